import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from .lifecycle import (
    ORDER_PENDING,
    ORDER_STATUS_CHOICES,
    REQUEST_PENDING,
    REQUEST_STATUS_CHOICES,
    REQUEST_TYPE_CHOICES,
)


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    pharmacy_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    category = models.CharField(max_length=100, blank=True, default='')
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))],
    )
    quantity = models.PositiveIntegerField(default=0)
    image_url = models.URLField(max_length=500, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=0), name='product_quantity_non_negative'),
            models.CheckConstraint(condition=models.Q(price__gte=0), name='product_price_non_negative'),
        ]


class DrugRequest(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    clinic_id = models.UUIDField(db_index=True)
    # 提交时的诊所名快照，之后不跟随诊所资料变化
    clinic_name = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=REQUEST_TYPE_CHOICES)
    photo_urls = models.JSONField(default=list, blank=True)
    # [{"product_id": "...", "quantity": 3, "product_name": "..."}]
    selected_products = models.JSONField(default=list, blank=True)
    delivery_address = models.TextField()
    patient_info = models.TextField(blank=True, default='')
    status = models.CharField(max_length=20, choices=REQUEST_STATUS_CHOICES, default=REQUEST_PENDING)
    rejection_reason = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'drug_requests'


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # OneToOne：一个已确认的请求最多对应一个订单，由数据库唯一约束保证
    request = models.OneToOneField(DrugRequest, on_delete=models.PROTECT, related_name='order')
    clinic_id = models.UUIDField(db_index=True)
    clinic_name = models.CharField(max_length=200, blank=True, default='')
    pharmacy_id = models.UUIDField(db_index=True)
    pharmacy_name = models.CharField(max_length=200, blank=True, default='')
    rider_id = models.UUIDField(blank=True, null=True, db_index=True)
    rider_name = models.CharField(max_length=200, blank=True, default='')
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
    )
    delivery_address = models.TextField()
    status = models.CharField(max_length=20, choices=ORDER_STATUS_CHOICES, default=ORDER_PENDING)
    estimated_delivery_time = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        constraints = [
            models.CheckConstraint(condition=models.Q(total_amount__gte=0), name='order_total_non_negative'),
        ]

    def items_total(self):
        """Recompute Σ quantity × price from the frozen item rows."""
        return sum((item.line_total for item in self.items.all()), Decimal('0.00'))


class OrderItem(models.Model):
    """确认时冻结的订单行：产品名和单价都是快照，不随 Product 修改而变化。"""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    position = models.PositiveIntegerField()
    product_id = models.UUIDField()
    product_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])

    class Meta:
        db_table = 'order_items'
        ordering = ['position']
        constraints = [
            models.UniqueConstraint(fields=['order', 'position'], name='order_item_position_unique'),
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name='order_item_quantity_positive'),
        ]

    @property
    def line_total(self):
        return self.price * self.quantity
