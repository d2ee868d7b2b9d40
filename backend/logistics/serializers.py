from rest_framework import serializers


class RiderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    phone = serializers.CharField()
    email = serializers.CharField()
    status = serializers.CharField(source="status.value")
    rating = serializers.FloatField(allow_null=True)
    rating_count = serializers.IntegerField()
    created_at = serializers.DateTimeField(allow_null=True)


class RatingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    rider_id = serializers.IntegerField()
    score = serializers.FloatField()
    feedback = serializers.CharField(allow_blank=True)
    created_at = serializers.DateTimeField(allow_null=True)


class OrderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    customer_id = serializers.CharField()
    status = serializers.CharField(source="status.value")
    rider_id = serializers.IntegerField(allow_null=True)
    delivery_fee = serializers.FloatField()
    created_at = serializers.DateTimeField(allow_null=True)
    assigned_at = serializers.DateTimeField(allow_null=True)
    delivered_at = serializers.DateTimeField(allow_null=True)


class DeliverySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    order_id = serializers.IntegerField()
    rider_id = serializers.IntegerField(allow_null=True)
    duration_seconds = serializers.FloatField(allow_null=True)
    cost = serializers.FloatField()
    delivered_at = serializers.DateTimeField(allow_null=True)


class AssignmentSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    rider_id = serializers.IntegerField()
    assigned_at = serializers.DateTimeField(allow_null=True)


class DispatchResultSerializer(serializers.Serializer):
    run_id = serializers.CharField()
    started_at = serializers.DateTimeField()
    message = serializers.CharField()
    assigned_count = serializers.IntegerField()
    assignments = AssignmentSerializer(many=True)
    unassigned_order_ids = serializers.ListField(child=serializers.IntegerField())
    skipped_order_ids = serializers.ListField(child=serializers.IntegerField())
