from django.contrib import admin
from .models import Component

@admin.register(Component)
class ComponentAdmin(admin.ModelAdmin):
    list_display = ("category", "external_id", "name", "brand", "price", "ean", "position")
    list_filter = ("category", "brand")
    search_fields = ("name", "external_id", "ean")
    ordering = ("category", "position")
