import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Listing",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("title", models.CharField(help_text="Listing headline", max_length=200)),
                ("description", models.TextField(blank=True, help_text="Listing description")),
                ("category", models.CharField(blank=True, db_index=True, help_text="Listing category", max_length=50)),
                ("price", models.DecimalField(blank=True, decimal_places=2, help_text="Daily rental price", max_digits=10, null=True)),
                ("location", models.CharField(blank=True, help_text="Pickup location", max_length=200)),
                ("is_available", models.BooleanField(db_index=True, default=True, help_text="Whether the listing is currently available to rent")),
                ("owner", models.ForeignKey(help_text="User who posted this listing", on_delete=django.db.models.deletion.CASCADE, related_name="listings", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "listings_listing",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["owner", "-created_at"], name="listing_owner_created_idx")],
            },
        ),
    ]
