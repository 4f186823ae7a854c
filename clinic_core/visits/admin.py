# clinic_core/visits/admin.py
from django.contrib import admin

from clinic_core.visits.models import Treatment, Visit, VisitTreatment


class VisitTreatmentInline(admin.TabularInline):
    model = VisitTreatment
    extra = 0


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "visit_date", "visit_type", "status")
    list_filter = ("status", "visit_type")
    autocomplete_fields = ("patient",)
    inlines = [VisitTreatmentInline]
    ordering = ("-visit_date",)


@admin.register(Treatment)
class TreatmentAdmin(admin.ModelAdmin):
    list_display = ("name", "price_cents", "duration_minutes", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)
