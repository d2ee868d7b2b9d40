from django.urls import path, include
from rest_framework.routers import DefaultRouter
from backend.logistics.views import (
    CommunicationView,
    DeliveryAnalyticsView,
    DispatchView,
    OrderStatusView,
    OrderViewSet,
    RiderViewSet,
)

router = DefaultRouter(trailing_slash=False)
router.register(r'riders', RiderViewSet, basename='rider')
router.register(r'orders', OrderViewSet, basename='order')

urlpatterns = [
    path('', include(router.urls)),
    path('order-status/<int:order_id>', OrderStatusView.as_view(), name='order-status'),
    path('automate-dispatch', DispatchView.as_view(), name='automate-dispatch'),
    path('communicate', CommunicationView.as_view(), name='communicate'),
    path('delivery-analytics', DeliveryAnalyticsView.as_view(), name='delivery-analytics'),
]
