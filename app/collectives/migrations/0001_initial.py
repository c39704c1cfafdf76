import uuid

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
            name="Collective",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "slug",
                    models.SlugField(
                        help_text="Unique URL identifier",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("USER", "User"),
                            ("ORGANIZATION", "Organization"),
                            ("COLLECTIVE", "Collective"),
                            ("FUND", "Fund"),
                            ("EVENT", "Event"),
                        ],
                        default="COLLECTIVE",
                        max_length=20,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="USD",
                        help_text="ISO 4217 currency code (uppercase)",
                        max_length=3,
                    ),
                ),
                (
                    "image_url",
                    models.URLField(blank=True, default="", max_length=500),
                ),
                (
                    "is_host",
                    models.BooleanField(
                        default=False,
                        help_text="Whether this account is a fiscal host",
                    ),
                ),
                (
                    "host",
                    models.ForeignKey(
                        blank=True,
                        help_text="Fiscal host holding funds for this account",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="hosted_collectives",
                        to="collectives.collective",
                    ),
                ),
            ],
            options={
                "verbose_name": "Collective",
                "verbose_name_plural": "Collectives",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Membership",
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
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("ADMIN", "Admin"), ("MEMBER", "Member")],
                        default="MEMBER",
                        max_length=20,
                    ),
                ),
                (
                    "collective",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="collectives.collective",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="membership",
            constraint=models.UniqueConstraint(
                fields=("user", "collective", "role"),
                name="membership_unique_role",
            ),
        ),
        migrations.CreateModel(
            name="Tier",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("TIER", "Tier"),
                            ("MEMBERSHIP", "Membership"),
                            ("SERVICE", "Service"),
                            ("PRODUCT", "Product"),
                            ("TICKET", "Ticket"),
                            ("DONATION", "Donation"),
                        ],
                        default="TIER",
                        max_length=20,
                    ),
                ),
                (
                    "amount_type",
                    models.CharField(
                        choices=[("FIXED", "Fixed"), ("FLEXIBLE", "Flexible")],
                        default="FIXED",
                        max_length=10,
                    ),
                ),
                (
                    "amount",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Fixed amount in cents",
                        null=True,
                    ),
                ),
                (
                    "minimum_amount",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Minimum amount in cents for flexible tiers",
                        null=True,
                    ),
                ),
                ("currency", models.CharField(default="USD", max_length=3)),
                (
                    "interval",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("month", "Monthly"),
                            ("year", "Yearly"),
                            ("flexible", "Flexible"),
                        ],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "collective",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tiers",
                        to="collectives.collective",
                    ),
                ),
            ],
            options={
                "ordering": ["collective", "name"],
            },
        ),
    ]
