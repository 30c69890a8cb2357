import logging
from datetime import date, datetime, time

from django.db.models import Count, Max, Q, Sum
from django.utils import timezone

from apps.core.exceptions import ValidationError
from apps.sites.models import Site
from apps.surveillance.models import Session, Specimen, SurveillanceForm

logger = logging.getLogger(__name__)

FED_ABDOMEN_STATUSES = ("Fed", "Blood-fed")


def _fed_filter() -> Q:
    q = Q()
    for status in FED_ABDOMEN_STATUSES:
        q |= Q(thumbnail_image__abdomen_status__iexact=status)
    return q


def _average(values) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


class MetricsService:
    """
    Entomological indicators for a district and a date range

    Every ratio is computed per house (site) first and then averaged across
    houses, so a house visited five times weighs the same as one visited once.
    """

    @staticmethod
    def get_metrics(district: str, start_date: date, end_date: date, site_access=None) -> dict:
        """
        Compute site information and the entomological summary

        Args:
            district: site district to aggregate over
            start_date: first day of the range (inclusive)
            end_date: last day of the range (exclusive)
            site_access: caller's SiteAccess; restricted callers only see
                their own sites

        Raises:
            ValidationError: if the dates are missing or start_date >= end_date
        """
        MetricsService._validate_range(start_date, end_date)
        logger.info(f"Computing metrics for district {district!r} from {start_date} to {end_date}")

        start = timezone.make_aware(datetime.combine(start_date, time.min))
        end = timezone.make_aware(datetime.combine(end_date, time.min))
        days = (end_date - start_date).days

        sites = Site.objects.filter(district=district)
        if site_access is not None and not site_access.is_global:
            sites = sites.filter(id__in=site_access.user_sites)

        sessions = Session.objects.filter(site__in=sites, collection_date__gte=start, collection_date__lt=end)
        surveillance_sessions = sessions.filter(type=Session.TYPE_SURVEILLANCE)
        forms = SurveillanceForm.objects.filter(session__in=sessions)

        houses_used_for_collection = sites.filter(is_active=True).count()

        # occupancy and net counts describe the house, not the visit:
        # take the largest value reported for each house
        house_forms = {
            row["session__site_id"]: row
            for row in forms.filter(num_people_slept_in_house__isnull=False)
            .values("session__site_id")
            .annotate(occupancy=Max("num_people_slept_in_house"), llins=Max("num_llins_available"))
        }
        people_in_all_houses_inspected = sum(row["occupancy"] for row in house_forms.values())

        house_specimens = {
            row["session__site_id"]: row
            for row in Specimen.objects.filter(session__in=surveillance_sessions)
            .values("session__site_id")
            .annotate(total=Count("id"), fed=Count("id", filter=_fed_filter()))
        }

        surveillance_houses = set(surveillance_sessions.order_by().values_list("site_id", flat=True).distinct())
        vector_density = _average(
            house_specimens.get(site_id, {}).get("total", 0) / days for site_id in surveillance_houses
        )

        occupied_houses = {site_id: row for site_id, row in house_forms.items() if row["occupancy"] > 0}
        fed_ratio = _average(
            house_specimens.get(site_id, {}).get("fed", 0) / row["occupancy"] for site_id, row in occupied_houses.items()
        )
        llins_per_person = _average((row["llins"] or 0) / row["occupancy"] for row in occupied_houses.values())

        # bednet totals count surveillance visits only
        totals = SurveillanceForm.objects.filter(session__in=surveillance_sessions).aggregate(
            total_llins=Sum("num_llins_available"),
            total_people_slept_under_llin=Sum("num_people_slept_under_llin"),
        )

        logger.info(
            f"Metrics for district {district!r}: {houses_used_for_collection} active houses, "
            f"{len(surveillance_houses)} with surveillance, {len(occupied_houses)} with occupancy"
        )

        return {
            "siteInformation": {
                "housesUsedForCollection": houses_used_for_collection,
                "peopleInAllHousesInspected": people_in_all_houses_inspected,
            },
            "entomologicalSummary": {
                "vectorDensity": round(vector_density, 2),
                "fedMosquitoesToPeopleSleptRatio": round(fed_ratio, 2),
                "totalLlins": totals["total_llins"] or 0,
                "totalPeopleSleptUnderLlin": totals["total_people_slept_under_llin"] or 0,
                "llinsPerPerson": round(llins_per_person, 2),
            },
        }

    @staticmethod
    def _validate_range(start_date, end_date):
        if not isinstance(start_date, date) or not isinstance(end_date, date):
            raise ValidationError("Invalid date format. Use YYYY-MM-DD format.")

        if isinstance(start_date, datetime) or isinstance(end_date, datetime):
            raise ValidationError("startDate and endDate must be dates, not datetimes")

        if start_date >= end_date:
            raise ValidationError("startDate must be before endDate")
