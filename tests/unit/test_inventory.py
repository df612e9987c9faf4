"""
Inventory Ledger：reserve_line 的原子扣减 + 药房产品管理。
"""
import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from medilink.exceptions import AuthorizationError, InsufficientStockError, NotFoundError
from medilink.intake.types import ProductDraft
from medilink.models import Product
from medilink.services.inventory import (
    ReservedLine,
    add_product,
    compute_total,
    delete_product,
    list_products,
    reserve_line,
    update_product,
)
from tests.conftest import FakeBlobStore, ProductFactory


# -------------------------------------------------------------------
# reserve_line
# -------------------------------------------------------------------

@pytest.mark.django_db
class TestReserveLine:

    def test_decrements_and_snapshots(self):
        product = ProductFactory(name='Amoxicillin', price=Decimal('10.00'), quantity=5)

        reserved = reserve_line(product.id, 3)

        assert reserved == ReservedLine(
            product_id=str(product.id), product_name='Amoxicillin', quantity=3, price=Decimal('10.00'),
        )
        product.refresh_from_db()
        assert product.quantity == 2

    def test_exact_stock_goes_to_zero(self):
        product = ProductFactory(quantity=4)
        reserve_line(product.id, 4)
        product.refresh_from_db()
        assert product.quantity == 0

    def test_insufficient_stock_leaves_stock_unchanged(self):
        product = ProductFactory(name='Amoxicillin', quantity=2)

        with pytest.raises(InsufficientStockError) as exc_info:
            reserve_line(product.id, 3)

        assert exc_info.value.detail == {
            'product_id': str(product.id),
            'product_name': 'Amoxicillin',
            'requested': 3,
            'available': 2,
        }
        product.refresh_from_db()
        assert product.quantity == 2

    def test_missing_product(self):
        missing = uuid.uuid4()
        with pytest.raises(NotFoundError) as exc_info:
            reserve_line(missing, 1)
        assert exc_info.value.code == 'PRODUCT_NOT_FOUND'
        assert exc_info.value.detail == {'product_id': str(missing)}

    def test_sequential_demand_never_oversells(self):
        """两次预留合计超过库存：第一次成功，第二次失败且不动库存。"""
        product = ProductFactory(quantity=5)

        reserve_line(product.id, 3)
        with pytest.raises(InsufficientStockError):
            reserve_line(product.id, 3)

        product.refresh_from_db()
        assert product.quantity == 2


def test_compute_total():
    lines = [
        ReservedLine('a', 'A', 3, Decimal('10.00')),
        ReservedLine('b', 'B', 2, Decimal('0.25')),
    ]
    assert compute_total(lines) == Decimal('30.50')
    assert compute_total([]) == Decimal('0.00')


# -------------------------------------------------------------------
# 产品管理
# -------------------------------------------------------------------

def _draft(image=None, **fields):
    return ProductDraft(fields=fields, image=image)


@pytest.mark.django_db
class TestAddProduct:

    def test_creates_with_image(self, pharmacy):
        store = FakeBlobStore()
        image = SimpleUploadedFile('box.jpg', b'img')
        product = add_product(
            pharmacy,
            _draft(image=image, name='Ibuprofen', category='pain', price=Decimal('4.50'), quantity=20),
            blob_store=store,
        )

        assert product.pharmacy_id == pharmacy.id
        assert product.image_url == 'https://blobs.test/box.jpg'

    def test_upload_failure_does_not_block(self, pharmacy):
        store = FakeBlobStore(fail_names={'box.jpg'})
        product = add_product(
            pharmacy,
            _draft(image=SimpleUploadedFile('box.jpg', b'img'), name='Ibuprofen', category='pain',
                   price=Decimal('4.50'), quantity=20),
            blob_store=store,
        )
        assert Product.objects.filter(pk=product.pk).exists()
        assert product.image_url == ''

    def test_clinic_cannot_add(self, clinic):
        with pytest.raises(AuthorizationError):
            add_product(clinic, _draft(name='X', category='c', price=Decimal('1'), quantity=1))


@pytest.mark.django_db
class TestUpdateProduct:

    def test_partial_update_keeps_quantity(self, pharmacy):
        product = ProductFactory(pharmacy_id=pharmacy.id, quantity=5)
        updated = update_product(pharmacy, product.id, _draft(price=Decimal('12.00')),
                                 blob_store=FakeBlobStore())

        assert updated.price == Decimal('12.00')
        product.refresh_from_db()
        assert product.quantity == 5

    def test_new_image_schedules_old_delete(self, pharmacy, django_capture_on_commit_callbacks):
        product = ProductFactory(pharmacy_id=pharmacy.id, image_url='https://blobs.test/old.jpg')

        with patch('medilink.tasks.delete_blob') as mock_task:
            with django_capture_on_commit_callbacks(execute=True):
                update_product(
                    pharmacy, product.id,
                    _draft(image=SimpleUploadedFile('new.jpg', b'img')),
                    blob_store=FakeBlobStore(),
                )

        mock_task.delay.assert_called_once_with('https://blobs.test/old.jpg')
        product.refresh_from_db()
        assert product.image_url == 'https://blobs.test/new.jpg'

    def test_other_pharmacy_product_not_found(self, pharmacy):
        product = ProductFactory()
        with pytest.raises(NotFoundError) as exc_info:
            update_product(pharmacy, product.id, _draft(name='Y'), blob_store=FakeBlobStore())
        assert exc_info.value.code == 'PRODUCT_NOT_FOUND'


@pytest.mark.django_db
class TestDeleteProduct:

    def test_deletes_and_schedules_image_cleanup(self, pharmacy, django_capture_on_commit_callbacks):
        product = ProductFactory(pharmacy_id=pharmacy.id, image_url='https://blobs.test/old.jpg')

        with patch('medilink.tasks.delete_blob') as mock_task:
            with django_capture_on_commit_callbacks(execute=True):
                delete_product(pharmacy, product.id)

        assert not Product.objects.filter(pk=product.pk).exists()
        mock_task.delay.assert_called_once_with('https://blobs.test/old.jpg')

    def test_without_image_no_task(self, pharmacy, django_capture_on_commit_callbacks):
        product = ProductFactory(pharmacy_id=pharmacy.id, image_url='')

        with django_capture_on_commit_callbacks() as callbacks:
            delete_product(pharmacy, product.id)

        assert callbacks == []


@pytest.mark.django_db
class TestListProducts:

    def test_scoped_to_pharmacy_with_search_and_category(self, pharmacy):
        ProductFactory(pharmacy_id=pharmacy.id, name='Amoxicillin', category='antibiotics')
        ProductFactory(pharmacy_id=pharmacy.id, name='Ibuprofen', category='pain')
        ProductFactory(name='Amoxicillin elsewhere')

        page = list_products(pharmacy, search='amox')
        assert [p.name for p in page.items] == ['Amoxicillin']

        page = list_products(pharmacy, category='pain')
        assert [p.name for p in page.items] == ['Ibuprofen']

    def test_pagination_meta(self, pharmacy):
        for _ in range(3):
            ProductFactory(pharmacy_id=pharmacy.id)

        page = list_products(pharmacy, page=2, limit=2)
        assert len(page.items) == 1
        assert page.meta() == {'current': 2, 'pages': 2, 'total': 3}
