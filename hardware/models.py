from django.db import models

from .records import (
    PERIPHERAL_CATEGORIES,
    REQUIRED_CATEGORIES,
    record_from_dict,
)

ACRONYMS = {"cpu": "CPU", "gpu": "GPU", "ram": "RAM", "psu": "PSU", "os": "OS"}

CATEGORY_CHOICES = [
    (c, ACRONYMS.get(c, c.capitalize()))
    for c in REQUIRED_CATEGORIES + PERIPHERAL_CATEGORIES
]


class Component(models.Model):
    category = models.CharField(
        max_length=40, choices=CATEGORY_CHOICES, db_index=True
    )
    external_id = models.CharField(max_length=100)
    name = models.CharField(max_length=200)
    brand = models.CharField(max_length=100, blank=True, null=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    ean = models.CharField(max_length=32, blank=True, null=True)
    # category specific fields (socket, tdp, maxGpuLength, ...)
    specs = models.JSONField(default=dict, blank=True)
    images = models.JSONField(default=list, blank=True)
    prices_by_option = models.JSONField(default=dict, blank=True)
    images_by_option = models.JSONField(default=dict, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ("category", "position", "id")
        constraints = [
            models.UniqueConstraint(
                fields=["category", "external_id"],
                name="unique_component_per_category",
            )
        ]

    def __str__(self):
        return f"{self.category}: {self.name}"

    def to_record(self):
        data = dict(self.specs or {})
        data.update(
            {
                "id": self.external_id,
                "name": self.name,
                "brand": self.brand,
                "price": float(self.price) if self.price is not None else None,
                "identifier": self.ean,
                "images": self.images or [],
                "prices_by_option": self.prices_by_option or {},
                "images_by_option": self.images_by_option or {},
            }
        )
        return record_from_dict(self.category, data)
