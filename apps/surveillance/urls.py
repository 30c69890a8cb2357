from django.urls import path
from .views import conflict_logs, metrics, resolve_conflict

urlpatterns = [
    path("resolve-conflict/", resolve_conflict, name="resolve-conflict"),
    path("conflict-logs/", conflict_logs, name="conflict-logs"),
    path("metrics/", metrics, name="session-metrics"),
]
