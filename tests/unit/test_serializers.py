"""
输出格式：camelCase，金额用字符串，rejectionReason 只在 rejected 时出现。
"""
from decimal import Decimal

import pytest

from medilink.pagination import Page, paginate
from medilink.models import DrugRequest
from medilink.serializers import serialize_order, serialize_page, serialize_product, serialize_request
from tests.conftest import DrugRequestFactory, OrderFactory, OrderItemFactory, ProductFactory


@pytest.mark.django_db
class TestSerializeRequest:

    def test_pending_request(self):
        request = DrugRequestFactory(selected_products=[
            {'product_id': 'p1', 'quantity': 3, 'product_name': 'Amoxicillin'},
        ])
        body = serialize_request(request)

        assert body['id'] == str(request.id)
        assert body['clinic'] == {'id': str(request.clinic_id), 'name': 'Harbour Clinic'}
        assert body['selectedProducts'] == [{'productId': 'p1', 'quantity': 3, 'productName': 'Amoxicillin'}]
        assert body['status'] == 'pending'
        assert 'rejectionReason' not in body
        assert 'order' not in body

    def test_rejected_has_reason(self):
        body = serialize_request(DrugRequestFactory(status='rejected', rejection_reason='No stock'))
        assert body['rejectionReason'] == 'No stock'

    def test_with_order(self):
        order = OrderFactory()
        body = serialize_request(order.request, order=order)
        assert body['order']['id'] == str(order.id)


@pytest.mark.django_db
class TestSerializeOrder:

    def test_items_and_identity(self):
        order = OrderFactory(total_amount=Decimal('25.00'))
        OrderItemFactory(order=order, position=0, product_name='A', quantity=2, price=Decimal('10.00'))
        OrderItemFactory(order=order, position=1, product_name='B', quantity=1, price=Decimal('5.00'))

        body = serialize_order(order)

        assert body['requestId'] == str(order.request_id)
        assert body['pharmacy']['name'] == 'Central Pharmacy'
        assert body['rider'] is None
        assert [i['productName'] for i in body['items']] == ['A', 'B']
        assert body['totalAmount'] == '25.00'

    def test_rider_shown_once_assigned(self):
        order = OrderFactory(status='assigned', rider_name='Kofi', rider_id='6f1c1a52-1d54-4f0a-9d77-0a6c2b1e9f10')
        assert serialize_order(order)['rider'] == {
            'id': '6f1c1a52-1d54-4f0a-9d77-0a6c2b1e9f10',
            'name': 'Kofi',
        }


@pytest.mark.django_db
def test_serialize_product():
    product = ProductFactory(price=Decimal('4.50'), image_url='')
    body = serialize_product(product)
    assert body['price'] == '4.50'
    assert body['imageUrl'] is None


@pytest.mark.django_db
def test_serialize_page():
    DrugRequestFactory()
    page = paginate(DrugRequest.objects.order_by('created_at'), page=1, limit=5)

    body = serialize_page(page, 'requests', serialize_request)

    assert len(body['requests']) == 1
    assert body['pagination'] == {'current': 1, 'pages': 1, 'total': 1}


def test_empty_page_meta():
    assert Page(items=[], current=1, pages=0, total=0).meta() == {'current': 1, 'pages': 0, 'total': 0}
