from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        ("students", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SchoolClass",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("academic_year", models.CharField(blank=True, max_length=9)),
                ("campus", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="classes", to="core.campus")),
                ("students", models.ManyToManyField(blank=True, related_name="classes", to="students.student")),
            ],
            options={
                "verbose_name": "Class",
                "verbose_name_plural": "Classes",
                "ordering": ["name", "id"],
            },
        ),
    ]
