from django.urls import path
from .views import (
    AvailableOrderListView,
    ClinicRequestHistoryView,
    ClinicRequestListView,
    InventoryRequestCreateView,
    OrderAcceptView,
    OrderStatusView,
    PendingRequestListView,
    PhotoArchiveView,
    PhotoDownloadView,
    PhotoRequestCreateView,
    ProductDetailView,
    ProductListCreateView,
    RequestAddItemsView,
    RequestConfirmView,
    RequestRejectView,
    UserOrderListView,
)

urlpatterns = [
    path('requests/photo', PhotoRequestCreateView.as_view(), name='request-photo-create'),
    path('requests/inventory', InventoryRequestCreateView.as_view(), name='request-inventory-create'),
    path('requests/user', ClinicRequestListView.as_view(), name='request-user-list'),
    path('requests/clinic/history', ClinicRequestHistoryView.as_view(), name='request-clinic-history'),
    path('requests/pending', PendingRequestListView.as_view(), name='request-pending-list'),
    path('requests/<uuid:request_id>/confirm', RequestConfirmView.as_view(), name='request-confirm'),
    path('requests/<uuid:request_id>/reject', RequestRejectView.as_view(), name='request-reject'),
    path('requests/<uuid:request_id>/add-items', RequestAddItemsView.as_view(), name='request-add-items'),
    path('requests/<uuid:request_id>/download-photo/<int:index>', PhotoDownloadView.as_view(), name='request-photo-download'),
    path('requests/<uuid:request_id>/download-all-photos', PhotoArchiveView.as_view(), name='request-photo-archive'),

    path('orders/available', AvailableOrderListView.as_view(), name='order-available-list'),
    path('orders/user', UserOrderListView.as_view(), name='order-user-list'),
    path('orders/<uuid:order_id>/accept', OrderAcceptView.as_view(), name='order-accept'),
    path('orders/<uuid:order_id>/status', OrderStatusView.as_view(), name='order-status'),

    path('products/', ProductListCreateView.as_view(), name='product-list'),
    path('products/<uuid:product_id>', ProductDetailView.as_view(), name='product-detail'),
]
