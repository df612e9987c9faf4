from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .auth import principal_from_request
from .exceptions import BaseAppException
from .intake import get_intake
from .intake.base import load_json_body
from .serializers import serialize_order, serialize_page, serialize_product, serialize_request
from .services import drug_requests, fulfillment, inventory, orders, photos


class ExceptionHandlerMixin:
    """
    捕获 BaseAppException 及其子类，返回统一格式：
    {"type": ..., "code": ..., "message": ..., "detail": ...}

    其他异常不处理，正常冒泡。
    """

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except BaseAppException as exc:
            body = {
                'type': exc.type,
                'code': exc.code,
                'message': exc.message,
            }
            if exc.detail is not None:
                body['detail'] = exc.detail
            return JsonResponse(body, status=exc.http_status)


@method_decorator(csrf_exempt, name='dispatch')
class ApiView(ExceptionHandlerMixin, View):
    """所有接口的基类：统一异常处理 + 读取网关传来的身份。"""

    def principal(self):
        return principal_from_request(self.request)

    def list_params(self):
        params = self.request.GET
        return {
            'search': params.get('search') or None,
            'filter': params.get('filter') or None,
            'page': params.get('page', 1),
            'limit': params.get('limit'),
        }

    def json_body(self):
        return load_json_body(self.request.body)


def _attachment(content, content_type, filename):
    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class PhotoRequestCreateView(ApiView):
    """POST /api/requests/photo - multipart: photos[], deliveryAddress, patientInfo"""

    def post(self, request):
        principal = self.principal()
        draft = get_intake('photo', request.POST, request.content_type, files=request.FILES).process()
        drug_request = drug_requests.create_photo_request(principal, draft)
        return JsonResponse(serialize_request(drug_request), status=201)


class InventoryRequestCreateView(ApiView):
    """POST /api/requests/inventory"""

    def post(self, request):
        principal = self.principal()
        draft = get_intake('inventory', request.body, request.content_type).process()
        drug_request = drug_requests.create_inventory_request(principal, draft)
        return JsonResponse(serialize_request(drug_request), status=201)


class ClinicRequestListView(ApiView):
    """GET /api/requests/user - clinic's own requests"""

    def get(self, request):
        page = drug_requests.list_clinic_requests(self.principal(), **self.list_params())
        return JsonResponse(serialize_page(page, 'requests', serialize_request))


class ClinicRequestHistoryView(ApiView):
    """GET /api/requests/clinic/history - non-pending requests with their orders"""

    def get(self, request):
        page = drug_requests.clinic_request_history(self.principal(), **self.list_params())
        return JsonResponse(serialize_page(
            page, 'requests',
            lambda r: serialize_request(r, order=drug_requests.order_for_request(r)),
        ))


class PendingRequestListView(ApiView):
    """GET /api/requests/pending - pharmacy queue"""

    def get(self, request):
        page = drug_requests.list_pending_requests(self.principal(), **self.list_params())
        return JsonResponse(serialize_page(page, 'requests', serialize_request))


class RequestConfirmView(ApiView):
    """PUT /api/requests/<id>/confirm - reserve stock and create the order"""

    def put(self, request, request_id):
        order = fulfillment.confirm_request(self.principal(), request_id)
        return JsonResponse(serialize_order(order), status=201)


class RequestRejectView(ApiView):
    """PUT /api/requests/<id>/reject - body: {"reason": "..."}"""

    def put(self, request, request_id):
        principal = self.principal()
        reason = self.json_body().get('reason')
        drug_request = drug_requests.reject_request(principal, request_id, reason)
        return JsonResponse({'message': 'Request rejected', 'request': serialize_request(drug_request)})


class RequestAddItemsView(ApiView):
    """PATCH /api/requests/<id>/add-items - pharmacy adds lines to a photo request"""

    def patch(self, request, request_id):
        principal = self.principal()
        amendment = get_intake('add_items', request.body, request.content_type).process()
        drug_request = drug_requests.amend_photo_request_items(principal, request_id, amendment)
        return JsonResponse({'message': 'Items added to photo request', 'request': serialize_request(drug_request)})


class PhotoDownloadView(ApiView):
    """GET /api/requests/<id>/download-photo/<index>"""

    def get(self, request, request_id, index):
        content, filename = photos.get_request_photo(self.principal(), request_id, index)
        return _attachment(content, 'image/jpeg', filename)


class PhotoArchiveView(ApiView):
    """GET /api/requests/<id>/download-all-photos"""

    def get(self, request, request_id):
        content, filename = photos.archive_request_photos(self.principal(), request_id)
        return _attachment(content, 'application/zip', filename)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

class AvailableOrderListView(ApiView):
    """GET /api/orders/available - pending orders riders can accept"""

    def get(self, request):
        page = orders.list_available_orders(self.principal(), **self.list_params())
        return JsonResponse(serialize_page(page, 'orders', serialize_order))


class UserOrderListView(ApiView):
    """GET /api/orders/user - orders scoped to the caller"""

    def get(self, request):
        page = orders.list_user_orders(self.principal(), **self.list_params())
        return JsonResponse(serialize_page(page, 'orders', serialize_order))


class OrderAcceptView(ApiView):
    """PUT /api/orders/<id>/accept"""

    def put(self, request, order_id):
        order = orders.accept_order(self.principal(), order_id)
        return JsonResponse(serialize_order(order))


class OrderStatusView(ApiView):
    """PUT /api/orders/<id>/status - body: {"status": "picked_up", "estimatedDeliveryTime": "..."}"""

    def put(self, request, order_id):
        principal = self.principal()
        update = get_intake('order_status', request.body, request.content_type).process()
        order = orders.update_order_status(
            principal, order_id, update.status, estimated_delivery_time=update.estimated_delivery_time,
        )
        return JsonResponse(serialize_order(order))


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

class ProductListCreateView(ApiView):
    """GET/POST /api/products/ - pharmacy inventory"""

    def get(self, request):
        params = self.list_params()
        page = inventory.list_products(
            self.principal(),
            search=params['search'],
            category=params['filter'],
            page=params['page'],
            limit=params['limit'],
        )
        return JsonResponse(serialize_page(page, 'products', serialize_product))

    def post(self, request):
        principal = self.principal()
        raw = request.body if request.content_type.startswith('application/json') else request.POST
        draft = get_intake('product', raw, request.content_type, files=request.FILES).process()
        product = inventory.add_product(principal, draft)
        return JsonResponse(serialize_product(product), status=201)


class ProductDetailView(ApiView):
    """POST|PUT/DELETE /api/products/<id> (POST 用于带图片的 multipart 更新)"""

    def post(self, request, product_id):
        principal = self.principal()
        raw = request.body if request.content_type.startswith('application/json') else request.POST
        draft = get_intake('product_update', raw, request.content_type, files=request.FILES).process()
        product = inventory.update_product(principal, product_id, draft)
        return JsonResponse(serialize_product(product))

    def put(self, request, product_id):
        principal = self.principal()
        draft = get_intake('product_update', request.body, 'application/json').process()
        product = inventory.update_product(principal, product_id, draft)
        return JsonResponse(serialize_product(product))

    def delete(self, request, product_id):
        inventory.delete_product(self.principal(), product_id)
        return JsonResponse({'message': 'Product deleted successfully'})
