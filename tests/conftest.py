"""
Shared fixtures for all tests.

factory-boy factories live here so both unit/ and integration/ can import them.
"""
import uuid
from decimal import Decimal

import factory
import pytest
from django.test import Client

from medilink.auth import ROLE_CLINIC, ROLE_PHARMACY, ROLE_RIDER, Principal
from medilink.models import DrugRequest, Order, OrderItem, Product


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    pharmacy_id = factory.LazyFunction(uuid.uuid4)
    name = factory.Sequence(lambda n: f'Amoxicillin {n}')
    description = '500mg capsules'
    category = 'antibiotics'
    price = Decimal('10.00')
    quantity = 5


class DrugRequestFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = DrugRequest

    clinic_id = factory.LazyFunction(uuid.uuid4)
    clinic_name = 'Harbour Clinic'
    type = 'inventory'
    photo_urls = factory.LazyFunction(list)
    selected_products = factory.LazyFunction(list)
    delivery_address = '12 Harbour Rd'
    patient_info = 'Bed 4'
    status = 'pending'


class OrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Order

    request = factory.SubFactory(DrugRequestFactory, status='confirmed')
    clinic_id = factory.SelfAttribute('request.clinic_id')
    clinic_name = factory.SelfAttribute('request.clinic_name')
    pharmacy_id = factory.LazyFunction(uuid.uuid4)
    pharmacy_name = 'Central Pharmacy'
    total_amount = Decimal('0.00')
    delivery_address = factory.SelfAttribute('request.delivery_address')
    status = 'pending'


class OrderItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    position = factory.Sequence(lambda n: n)
    product_id = factory.LazyFunction(uuid.uuid4)
    product_name = 'Amoxicillin'
    quantity = 1
    price = Decimal('10.00')


def line(product, quantity):
    """selected_products 里的一行（存库格式）。"""
    return {'product_id': str(product.id), 'quantity': quantity, 'product_name': product.name}


# ---------------------------------------------------------------------------
# Principals
# ---------------------------------------------------------------------------

@pytest.fixture
def clinic():
    return Principal(id=uuid.uuid4(), role=ROLE_CLINIC, name='Harbour Clinic')


@pytest.fixture
def pharmacy():
    return Principal(id=uuid.uuid4(), role=ROLE_PHARMACY, name='Central Pharmacy')


@pytest.fixture
def rider():
    return Principal(id=uuid.uuid4(), role=ROLE_RIDER, name='Kofi')


@pytest.fixture
def other_rider():
    return Principal(id=uuid.uuid4(), role=ROLE_RIDER, name='Ama')


def auth_headers(principal):
    """Django test Client 的 extra kwargs：模拟网关写入的身份头。"""
    return {
        'HTTP_X_PRINCIPAL_ID': str(principal.id),
        'HTTP_X_PRINCIPAL_ROLE': principal.role,
        'HTTP_X_PRINCIPAL_NAME': principal.name,
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client():
    """Django test client for integration tests."""
    return Client()


class FakeBlobStore:
    """内存版 BlobStore：记录上传/删除，可指定哪些文件名上传失败。"""

    def __init__(self, fail_names=(), content=b'jpeg-bytes', fail_fetch=()):
        self.fail_names = set(fail_names)
        self.fail_fetch = set(fail_fetch)
        self.content = content
        self.uploaded = []
        self.deleted = []

    def upload(self, file):
        from medilink.exceptions import UpstreamError
        from medilink.storage import BlobRef

        if file.name in self.fail_names:
            raise UpstreamError('Image upload failed', code='BLOB_UPLOAD_FAILED')
        self.uploaded.append(file.name)
        return BlobRef(url=f'https://blobs.test/{file.name}', public_id=file.name)

    def delete(self, public_id_or_url):
        self.deleted.append(public_id_or_url)

    def id_from_url(self, url):
        return url.rsplit('/', 1)[-1]

    def fetch(self, url):
        from medilink.exceptions import UpstreamError

        if url in self.fail_fetch:
            raise UpstreamError('Failed to fetch image', code='BLOB_FETCH_FAILED')
        return self.content + url.encode()


@pytest.fixture
def blob_store():
    return FakeBlobStore()
