from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Component",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("case", "Case"),
                            ("motherboard", "Motherboard"),
                            ("cpu", "CPU"),
                            ("ram", "RAM"),
                            ("gpu", "GPU"),
                            ("storage", "Storage"),
                            ("psu", "PSU"),
                            ("cooling", "Cooling"),
                            ("keyboard", "Keyboard"),
                            ("mouse", "Mouse"),
                            ("monitor", "Monitor"),
                            ("headset", "Headset"),
                            ("speakers", "Speakers"),
                            ("webcam", "Webcam"),
                            ("microphone", "Microphone"),
                            ("mousepad", "Mousepad"),
                            ("gamepad", "Gamepad"),
                            ("software", "Software"),
                            ("os", "OS"),
                        ],
                        db_index=True,
                        max_length=40,
                    ),
                ),
                ("external_id", models.CharField(max_length=100)),
                ("name", models.CharField(max_length=200)),
                (
                    "brand",
                    models.CharField(blank=True, max_length=100, null=True),
                ),
                (
                    "price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=12, null=True
                    ),
                ),
                ("ean", models.CharField(blank=True, max_length=32, null=True)),
                ("specs", models.JSONField(blank=True, default=dict)),
                ("images", models.JSONField(blank=True, default=list)),
                (
                    "prices_by_option",
                    models.JSONField(blank=True, default=dict),
                ),
                (
                    "images_by_option",
                    models.JSONField(blank=True, default=dict),
                ),
                ("position", models.PositiveIntegerField(default=0)),
            ],
            options={
                "ordering": ("category", "position", "id"),
            },
        ),
        migrations.AddConstraint(
            model_name="component",
            constraint=models.UniqueConstraint(
                fields=("category", "external_id"),
                name="unique_component_per_category",
            ),
        ),
    ]
