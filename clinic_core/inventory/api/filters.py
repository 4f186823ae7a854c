# clinic_core/inventory/api/filters.py
from __future__ import annotations

import django_filters
from django.db.models import F

from clinic_core.inventory.models import Product


class ProductFilter(django_filters.FilterSet):
    low_stock = django_filters.BooleanFilter(method="filter_low_stock")

    class Meta:
        model = Product
        fields = ["category", "is_active"]

    def filter_low_stock(self, queryset, name, value):
        if value is None:
            return queryset
        low = queryset.filter(stock_quantity__lte=F("min_stock_level"))
        return low if value else queryset.exclude(id__in=low.values("id"))
