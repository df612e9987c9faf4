"""
Response serializers — ORM 对象 → JSON-able dict。

只负责「输出格式化」，不做任何解析或校验。
输入解析和校验在 medilink/intake/ 里。
字段名沿用前端已经在用的 camelCase。
"""


def _iso(value):
    return value.isoformat() if value else None


def serialize_product(product):
    return {
        'id': str(product.id),
        'pharmacyId': str(product.pharmacy_id),
        'name': product.name,
        'description': product.description,
        'category': product.category,
        'price': str(product.price),
        'quantity': product.quantity,
        'imageUrl': product.image_url or None,
        'createdAt': _iso(product.created_at),
        'updatedAt': _iso(product.updated_at),
    }


def serialize_order_item(item):
    return {
        'productId': str(item.product_id),
        'productName': item.product_name,
        'quantity': item.quantity,
        'price': str(item.price),
    }


def serialize_order(order):
    """Serialize order with clinic / pharmacy / rider identity for display."""
    return {
        'id': str(order.id),
        'requestId': str(order.request_id),
        'clinic': {'id': str(order.clinic_id), 'name': order.clinic_name},
        'pharmacy': {'id': str(order.pharmacy_id), 'name': order.pharmacy_name},
        'rider': {'id': str(order.rider_id), 'name': order.rider_name} if order.rider_id else None,
        'items': [serialize_order_item(item) for item in order.items.all()],
        'totalAmount': str(order.total_amount),
        'deliveryAddress': order.delivery_address,
        'status': order.status,
        'estimatedDeliveryTime': _iso(order.estimated_delivery_time),
        'createdAt': _iso(order.created_at),
        'updatedAt': _iso(order.updated_at),
    }


def serialize_request(request, order=None):
    """Serialize a drug request; attach its order when given (clinic history view)."""
    response = {
        'id': str(request.id),
        'clinic': {'id': str(request.clinic_id), 'name': request.clinic_name},
        'type': request.type,
        'photoUrls': list(request.photo_urls or []),
        'selectedProducts': [
            {
                'productId': line.get('product_id'),
                'quantity': line.get('quantity'),
                'productName': line.get('product_name'),
            }
            for line in (request.selected_products or [])
        ],
        'deliveryAddress': request.delivery_address,
        'patientInfo': request.patient_info,
        'status': request.status,
        'createdAt': _iso(request.created_at),
        'updatedAt': _iso(request.updated_at),
    }

    if request.status == 'rejected':
        response['rejectionReason'] = request.rejection_reason

    if order is not None:
        response['order'] = serialize_order(order)

    return response


def serialize_page(page, key, item_serializer):
    """Serialize a pagination.Page under the given list key."""
    return {
        key: [item_serializer(item) for item in page.items],
        'pagination': page.meta(),
    }
