from rest_framework import serializers

from apps.core.timestamps import MAX_EPOCH_MS, MAX_INT_COLUMN, to_epoch_ms
from .models import Session, SessionConflictResolution


class ResolvedDataSerializer(serializers.Serializer):
    """
    Session values chosen by the operator

    Only the keys present in the request are applied; an explicit null
    clears the field. Timestamps are epoch milliseconds.
    """

    collectorTitle = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    collectorName = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    collectionDate = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_EPOCH_MS)
    collectionMethod = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    specimenCondition = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    createdAt = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_EPOCH_MS)
    completedAt = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_EPOCH_MS)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    latitude = serializers.FloatField(required=False, allow_null=True)
    longitude = serializers.FloatField(required=False, allow_null=True)
    type = serializers.ChoiceField(choices=[c[0] for c in Session.TYPE_CHOICES], required=False)
    collectorLastTrainedOn = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_EPOCH_MS)
    hardwareId = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=64)
    totalSpecimens = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_INT_COLUMN)


class ResolvedSurveillanceFormSerializer(serializers.Serializer):
    """Surveillance form values applied to every existing form of the group"""

    numPeopleSleptInHouse = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_INT_COLUMN)
    wasIrsConducted = serializers.BooleanField(required=False, allow_null=True)
    monthsSinceIrs = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_INT_COLUMN)
    numLlinsAvailable = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_INT_COLUMN)
    llinType = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    llinBrand = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    numPeopleSleptUnderLlin = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=MAX_INT_COLUMN)


class ResolveConflictSerializer(serializers.Serializer):
    sessionIds = serializers.ListField(child=serializers.IntegerField(min_value=1, max_value=2**63 - 1), min_length=2)
    resolvedData = ResolvedDataSerializer()
    resolvedSurveillanceForm = ResolvedSurveillanceFormSerializer(required=False, allow_null=True)

    def validate_sessionIds(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Session IDs must not contain duplicates")
        return value


class ConflictLogQuerySerializer(serializers.Serializer):
    siteId = serializers.IntegerField(required=False, min_value=1)
    month = serializers.IntegerField(required=False, min_value=1, max_value=12)
    year = serializers.IntegerField(required=False, min_value=1)
    sessionId = serializers.IntegerField(required=False, min_value=1)


class MetricsQuerySerializer(serializers.Serializer):
    district = serializers.CharField()
    startDate = serializers.DateField(input_formats=["%Y-%m-%d"])
    endDate = serializers.DateField(input_formats=["%Y-%m-%d"])

    def validate(self, attrs):
        if attrs["startDate"] >= attrs["endDate"]:
            raise serializers.ValidationError("startDate must be before endDate")
        return attrs


class SessionConflictResolutionSerializer(serializers.ModelSerializer):
    """Audit log entry as returned by the conflict-logs endpoint"""

    resolvedByUserId = serializers.IntegerField(source="resolved_by_id", read_only=True, allow_null=True)
    resolvedAt = serializers.SerializerMethodField()
    sessionIds = serializers.JSONField(source="session_ids", read_only=True)
    siteId = serializers.IntegerField(source="site_id", read_only=True)
    beforeData = serializers.JSONField(source="before_data", read_only=True)
    afterData = serializers.JSONField(source="after_data", read_only=True)

    class Meta:
        model = SessionConflictResolution
        fields = [
            "id",
            "resolvedByUserId",
            "resolvedAt",
            "sessionIds",
            "siteId",
            "month",
            "year",
            "beforeData",
            "afterData",
        ]
        read_only_fields = fields

    def get_resolvedAt(self, obj):
        return to_epoch_ms(obj.resolved_at)
