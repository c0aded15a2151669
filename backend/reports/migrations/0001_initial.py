import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

CATEGORY_CHOICES = [
    ("Water Supply - Drinking Water", "Water Supply - Drinking Water"),
    ("Architectural Barriers", "Architectural Barriers"),
    ("Sewer System", "Sewer System"),
    ("Public Lighting", "Public Lighting"),
    ("Waste", "Waste"),
    ("Road Signs and Traffic Lights", "Road Signs and Traffic Lights"),
    ("Roads and Urban Furnishings", "Roads and Urban Furnishings"),
    ("Public Green Areas and Playgrounds", "Public Green Areas and Playgrounds"),
    ("Other", "Other"),
]

STATUS_CHOICES = [
    ("Pending Approval", "Pending Approval"),
    ("Assigned", "Assigned"),
    ("In Progress", "In Progress"),
    ("Resolved", "Resolved"),
    ("Rejected", "Rejected"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(verbose_name="Description")),
                ("category", models.CharField(choices=CATEGORY_CHOICES, max_length=64, verbose_name="Category")),
                ("latitude", models.FloatField(verbose_name="Latitude")),
                ("longitude", models.FloatField(verbose_name="Longitude")),
                ("status", models.CharField(choices=STATUS_CHOICES, db_index=True, default="Pending Approval", max_length=32, verbose_name="Status")),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="Rejection Reason")),
                ("is_anonymous", models.BooleanField(default=False, verbose_name="Anonymous")),
                ("assignee", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assigned_reports", to=settings.AUTH_USER_MODEL, verbose_name="Assignee")),
                ("external_assignee", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="externally_assigned_reports", to=settings.AUTH_USER_MODEL, verbose_name="External Assignee")),
                ("reporter", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reports", to=settings.AUTH_USER_MODEL, verbose_name="Reporter")),
            ],
            options={
                "verbose_name": "Report",
                "verbose_name_plural": "Reports",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["assignee", "status"], name="report_assignee_status_idx"),
                    models.Index(fields=["external_assignee", "status"], name="report_external_status_idx"),
                    models.Index(fields=["category"], name="report_category_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReportPhoto",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(max_length=500, verbose_name="Storage Reference")),
                ("position", models.PositiveSmallIntegerField(default=0, verbose_name="Position")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="photos", to="reports.report", verbose_name="Report")),
            ],
            options={
                "verbose_name": "Report Photo",
                "verbose_name_plural": "Report Photos",
                "ordering": ["position", "id"],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("content", models.TextField(verbose_name="Content")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="messages", to="reports.report", verbose_name="Report")),
                ("sender", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sent_messages", to=settings.AUTH_USER_MODEL, verbose_name="Sender")),
            ],
            options={
                "verbose_name": "Message",
                "verbose_name_plural": "Messages",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="InternalComment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("content", models.TextField(verbose_name="Content")),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="internal_comments", to=settings.AUTH_USER_MODEL, verbose_name="Author")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="internal_comments", to="reports.report", verbose_name="Report")),
            ],
            options={
                "verbose_name": "Internal Comment",
                "verbose_name_plural": "Internal Comments",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="CategoryRoleMapping",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("category", models.CharField(choices=CATEGORY_CHOICES, max_length=64, unique=True, verbose_name="Category")),
                ("department_role", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="category_mappings", to="accounts.departmentrole", verbose_name="Responsible Department Role")),
            ],
            options={
                "verbose_name": "Category Role Mapping",
                "verbose_name_plural": "Category Role Mappings",
                "ordering": ["category"],
            },
        ),
    ]
