from django.apps import apps
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from analytics.reporter import DeliveryAnalytics
from dispatch.dispatcher import Dispatcher
from errors import ValidationError
from orders.communication import CustomerMessenger
from orders.lifecycle import OrderLifecycle
from riders.directory import RiderDirectory

from .serializers import (
    DeliverySerializer,
    DispatchResultSerializer,
    OrderSerializer,
    RatingSerializer,
    RiderSerializer,
)


def get_store():
    """The process-wide store handle opened in LogisticsConfig.ready()."""
    return apps.get_app_config("logistics").store


def optional_int(value, name):
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None


class RiderViewSet(viewsets.ViewSet):
    """
    Rider directory:
    - list / retrieve / create / update / delete
    - PATCH status, POST ratings
    """
    lookup_value_regex = r"\d+"

    def get_directory(self):
        return RiderDirectory(get_store())

    def list(self, request):
        riders = self.get_directory().list_riders()
        return Response(RiderSerializer(riders, many=True).data)

    def retrieve(self, request, pk=None):
        rider = self.get_directory().get_rider(int(pk))
        return Response(RiderSerializer(rider).data)

    def create(self, request):
        rider_id = self.get_directory().create_rider(request.data)
        return Response({"rider_id": rider_id, "message": "Rider added successfully"}, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        rider = self.get_directory().update_rider(int(pk), request.data)
        return Response(RiderSerializer(rider).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        self.get_directory().delete_rider(int(pk))
        return Response({"message": "Rider deleted successfully"})

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        rider = self.get_directory().set_status(int(pk), request.data.get("status"))
        return Response(RiderSerializer(rider).data)

    @action(detail=True, methods=["get", "post"])
    def ratings(self, request, pk=None):
        directory = self.get_directory()
        if request.method == "GET":
            return Response(RatingSerializer(directory.list_ratings(int(pk)), many=True).data)

        rating_id = directory.add_rating(int(pk), request.data.get("rating"), request.data.get("feedback", ""))
        return Response({"rating_id": rating_id, "message": "Rating added successfully"}, status=status.HTTP_201_CREATED)


class OrderViewSet(viewsets.ViewSet):
    """
    Order lifecycle: intake, reads, guarded status changes, delivery confirmation.
    """
    lookup_value_regex = r"\d+"

    def get_lifecycle(self):
        return OrderLifecycle(get_store())

    def list(self, request):
        orders = self.get_lifecycle().list_orders(request.query_params.get("status"))
        return Response(OrderSerializer(orders, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(OrderSerializer(self.get_lifecycle().get_order(int(pk))).data)

    def create(self, request):
        order_id = self.get_lifecycle().create_order(
            request.data.get("customerId"), request.data.get("deliveryFee", 0)
        )
        return Response({"order_id": order_id, "message": "Order created successfully"}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request, pk=None):
        order = self.get_lifecycle().set_status(
            int(pk), request.data.get("newStatus"), rider_id=optional_int(request.data.get("riderId"), "riderId")
        )
        return Response({"message": "Order status updated successfully", "order": OrderSerializer(order).data})

    @action(detail=True, methods=["put"], url_path="confirm-delivery")
    def confirm_delivery(self, request, pk=None):
        delivery = self.get_lifecycle().confirm_delivery(int(pk))
        return Response({"message": "Delivery confirmed successfully", "delivery": DeliverySerializer(delivery).data})

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        order = self.get_lifecycle().cancel(int(pk))
        return Response({"message": "Order cancelled", "order": OrderSerializer(order).data})


class OrderStatusView(APIView):
    def get(self, request, order_id):
        order_status = OrderLifecycle(get_store()).get_status(order_id)
        return Response({"status": order_status.value})


class DispatchView(APIView):
    def post(self, request):
        result = Dispatcher(get_store()).run()
        return Response(DispatchResultSerializer(result).data)


class CommunicationView(APIView):
    def post(self, request):
        message = CustomerMessenger(get_store()).communicate(
            request.data.get("customerId"), request.data.get("message")
        )
        return Response({"message": message})


class DeliveryAnalyticsView(APIView):
    def get(self, request):
        return Response(DeliveryAnalytics(get_store()).report().as_dict())
