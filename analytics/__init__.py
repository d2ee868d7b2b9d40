from .reporter import DeliveryAnalytics, DeliveryReport

__all__ = ["DeliveryAnalytics", "DeliveryReport"]
