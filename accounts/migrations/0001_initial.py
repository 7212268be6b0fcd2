from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion

import accounts.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "role",
                    models.CharField(
                        choices=[("student", "Student"), ("admin", "Admin")],
                        db_index=True,
                        default="student",
                        max_length=16,
                    ),
                ),
                (
                    "name",
                    models.CharField(blank=True, max_length=50, validators=[django.core.validators.MinLengthValidator(2)]),
                ),
                (
                    "phone",
                    models.CharField(
                        blank=True,
                        max_length=20,
                        validators=[
                            django.core.validators.RegexValidator(
                                "^\\+?[\\d\\s\\-()]+$", "Please provide a valid phone number"
                            )
                        ],
                    ),
                ),
                (
                    "date_of_birth",
                    models.DateField(blank=True, null=True, validators=[accounts.models.validate_past_date]),
                ),
                ("address", models.CharField(blank=True, max_length=200)),
                ("profile_picture", models.URLField(blank=True, max_length=500, null=True)),
                ("profile_picture_id", models.CharField(blank=True, max_length=255)),
                ("is_blocked", models.BooleanField(db_index=True, default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
    ]
