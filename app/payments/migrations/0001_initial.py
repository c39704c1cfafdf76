import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


def _timestamps():
    return [
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
    ]


def _uuid_pk():
    return (
        "id",
        models.UUIDField(
            default=uuid.uuid4,
            editable=False,
            help_text="Unique identifier for this record",
            primary_key=True,
            serialize=False,
        ),
    )


SERVICE_CHOICES = [("paypal", "PayPal"), ("stripe", "Stripe")]
INTERVAL_CHOICES = [("month", "Monthly"), ("year", "Yearly")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("collectives", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ConnectedAccount",
            fields=[
                *_timestamps(),
                _uuid_pk(),
                (
                    "service",
                    models.CharField(
                        choices=SERVICE_CHOICES,
                        help_text="Payment backend these credentials are for",
                        max_length=20,
                    ),
                ),
                (
                    "client_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Public client identifier",
                        max_length=255,
                    ),
                ),
                (
                    "token",
                    models.CharField(
                        help_text="Secret used to authenticate with the provider",
                        max_length=255,
                    ),
                ),
                (
                    "data",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Provider-specific settings",
                    ),
                ),
                (
                    "collective",
                    models.ForeignKey(
                        help_text="Host account these credentials belong to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="connected_accounts",
                        to="collectives.collective",
                    ),
                ),
            ],
            options={
                "verbose_name": "Connected Account",
                "verbose_name_plural": "Connected Accounts",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("collective", "service"),
                        name="connected_account_unique_service",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentMethod",
            fields=[
                *_timestamps(),
                _uuid_pk(),
                (
                    "service",
                    models.CharField(
                        choices=SERVICE_CHOICES, db_index=True, max_length=20
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("subscription", "Subscription"),
                            ("creditcard", "Credit Card"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Display name shown to the contributor",
                        max_length=255,
                    ),
                ),
                (
                    "token",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Provider-side identifier",
                        max_length=255,
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
                ("saved", models.BooleanField(default=False)),
                ("data", models.JSONField(blank=True, default=dict)),
                (
                    "collective",
                    models.ForeignKey(
                        help_text="Account owning this payment method",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_methods",
                        to="collectives.collective",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_methods",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment Method",
                "verbose_name_plural": "Payment Methods",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["service", "type"],
                        name="payments_pa_service_5d1f0b_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Subscription",
            fields=[
                *_timestamps(),
                _uuid_pk(),
                (
                    "amount",
                    models.PositiveIntegerField(
                        help_text="Amount per charge in smallest currency unit (e.g., cents)"
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
                    "interval",
                    models.CharField(
                        choices=INTERVAL_CHOICES, default="month", max_length=10
                    ),
                ),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("is_active", models.BooleanField(db_index=True, default=False)),
                (
                    "is_managed_externally",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the payment provider drives the charge schedule",
                    ),
                ),
                (
                    "paypal_subscription_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="PayPal subscription ID (I-xxx)",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "stripe_subscription_id",
                    models.CharField(
                        blank=True,
                        help_text="Stripe subscription ID (sub_xxx)",
                        max_length=255,
                        null=True,
                    ),
                ),
                ("next_charge_date", models.DateTimeField(blank=True, null=True)),
                ("next_period_start", models.DateTimeField(blank=True, null=True)),
                (
                    "charge_number",
                    models.PositiveIntegerField(
                        default=0, help_text="Number of successful charges so far"
                    ),
                ),
                ("activated_at", models.DateTimeField(blank=True, null=True)),
                ("deactivated_at", models.DateTimeField(blank=True, null=True)),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
            ],
            options={
                "verbose_name": "Subscription",
                "verbose_name_plural": "Subscriptions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["is_active", "next_charge_date"],
                        name="payments_su_is_acti_8c2e4a_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                *_timestamps(),
                _uuid_pk(),
                (
                    "total_amount",
                    models.PositiveIntegerField(
                        help_text="Amount per charge in smallest currency unit (e.g., cents)"
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
                    "interval",
                    models.CharField(
                        blank=True,
                        choices=INTERVAL_CHOICES,
                        help_text="Recurrence, empty for one-time orders",
                        max_length=10,
                        null=True,
                    ),
                ),
                ("quantity", models.PositiveIntegerField(default=1)),
                (
                    "description",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("NEW", "New"),
                            ("PENDING", "Pending"),
                            ("PAID", "Paid"),
                            ("ACTIVE", "Active"),
                            ("ERROR", "Error"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="NEW",
                        help_text="Current state of the order (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("data", models.JSONField(blank=True, default=dict)),
                (
                    "created_by",
                    models.ForeignKey(
                        help_text="User who placed the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "from_collective",
                    models.ForeignKey(
                        help_text="Contributing account",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="outgoing_orders",
                        to="collectives.collective",
                    ),
                ),
                (
                    "collective",
                    models.ForeignKey(
                        help_text="Receiving account",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_orders",
                        to="collectives.collective",
                    ),
                ),
                (
                    "tier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="collectives.tier",
                    ),
                ),
                (
                    "payment_method",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="payments.paymentmethod",
                    ),
                ),
                (
                    "subscription",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order",
                        to="payments.subscription",
                    ),
                ),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["from_collective", "status"],
                        name="payments_or_from_co_3b7e91_idx",
                    ),
                    models.Index(
                        fields=["collective", "status"],
                        name="payments_or_collect_a4d0c2_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaypalProduct",
            fields=[
                *_timestamps(),
                (
                    "id",
                    models.CharField(
                        help_text="PayPal product ID (PROD-xxx)",
                        max_length=255,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "collective",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="paypal_products",
                        to="collectives.collective",
                    ),
                ),
                (
                    "tier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="paypal_products",
                        to="collectives.tier",
                    ),
                ),
            ],
            options={
                "verbose_name": "PayPal Product",
                "verbose_name_plural": "PayPal Products",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("tier__isnull", False)),
                        fields=("collective", "tier"),
                        name="paypal_product_unique_tier",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("tier__isnull", True)),
                        fields=("collective",),
                        name="paypal_product_unique_untiered",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaypalPlan",
            fields=[
                *_timestamps(),
                (
                    "id",
                    models.CharField(
                        help_text="PayPal plan ID (P-xxx)",
                        max_length=255,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "amount",
                    models.PositiveIntegerField(
                        help_text="Price per billing cycle in smallest currency unit"
                    ),
                ),
                ("currency", models.CharField(max_length=3)),
                (
                    "interval",
                    models.CharField(choices=INTERVAL_CHOICES, max_length=10),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="plans",
                        to="payments.paypalproduct",
                    ),
                ),
            ],
            options={
                "verbose_name": "PayPal Plan",
                "verbose_name_plural": "PayPal Plans",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "amount", "currency", "interval"),
                        name="paypal_plan_unique_terms",
                    ),
                ],
            },
        ),
    ]
