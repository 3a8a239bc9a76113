from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        ("students", "0001_initial"),
        ("teachers", "0001_initial"),
        ("classes", "0001_initial"),
        ("subjects", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="GradingScale",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, max_length=300)),
                ("system", models.CharField(choices=[("NUMERIC_20", "Out of 20"), ("NUMERIC_100", "Out of 100"), ("LETTER", "Letter"), ("GPA", "GPA")], max_length=20)),
                ("max_score", models.DecimalField(decimal_places=4, max_digits=10)),
                ("pass_mark", models.DecimalField(decimal_places=4, max_digits=10)),
                ("bands", models.JSONField(blank=True, default=list)),
                ("is_default", models.BooleanField(db_index=True, default=False)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("campus", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="grading_scales", to="core.campus")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("updated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-is_default", "name", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="gradingscale",
            constraint=models.UniqueConstraint(fields=("campus", "name"), name="uniq_grading_scale_name_per_campus"),
        ),
        migrations.AddConstraint(
            model_name="gradingscale",
            constraint=models.UniqueConstraint(condition=models.Q(("is_active", True), ("is_default", True)), fields=("campus",), name="uniq_default_grading_scale_per_campus"),
        ),
        migrations.CreateModel(
            name="Result",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("is_deleted", models.BooleanField(db_index=True, default=False)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("evaluation_type", models.CharField(choices=[("CC", "Continuous assessment"), ("EXAM", "Exam"), ("RETAKE", "Retake"), ("PROJECT", "Project"), ("PRACTICAL", "Practical")], max_length=20)),
                ("evaluation_title", models.CharField(max_length=200)),
                ("academic_year", models.CharField(db_index=True, max_length=9, validators=[django.core.validators.RegexValidator(message="Academic year must be in format YYYY-YYYY (e.g. 2024-2025).", regex="^\\d{4}-\\d{4}$")])),
                ("semester", models.CharField(choices=[("S1", "Semester 1"), ("S2", "Semester 2"), ("Annual", "Annual")], db_index=True, max_length=10)),
                ("score", models.DecimalField(decimal_places=2, max_digits=8, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("max_score", models.DecimalField(decimal_places=2, max_digits=8, validators=[django.core.validators.MinValueValidator(Decimal("1"))])),
                ("coefficient", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("normalized_score", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("grade_band", models.JSONField(blank=True, null=True)),
                ("exam_date", models.DateField(blank=True, null=True)),
                ("exam_period", models.CharField(choices=[("Midterm", "Midterm"), ("Final", "Final"), ("Quiz", "Quiz"), ("Assignment", "Assignment"), ("Project", "Project"), ("Practical", "Practical")], default="Midterm", max_length=20)),
                ("exam_week", models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(52)])),
                ("exam_month", models.CharField(blank=True, choices=[("January", "January"), ("February", "February"), ("March", "March"), ("April", "April"), ("May", "May"), ("June", "June"), ("July", "July"), ("August", "August"), ("September", "September"), ("October", "October"), ("November", "November"), ("December", "December")], max_length=10)),
                ("exam_attendance", models.CharField(choices=[("present", "Present"), ("absent", "Absent"), ("excused", "Excused")], default="present", max_length=10)),
                ("special_circumstances", models.CharField(blank=True, max_length=200)),
                ("teacher_remarks", models.CharField(blank=True, max_length=1000)),
                ("class_manager_remarks", models.CharField(blank=True, max_length=1000)),
                ("strengths", models.CharField(blank=True, max_length=500)),
                ("improvements", models.CharField(blank=True, max_length=500)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("SUBMITTED", "Submitted"), ("PUBLISHED", "Published"), ("ARCHIVED", "Archived")], db_index=True, default="DRAFT", max_length=20)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("published_at", models.DateTimeField(blank=True, null=True)),
                ("archived_at", models.DateTimeField(blank=True, null=True)),
                ("period_locked", models.BooleanField(db_index=True, default=False)),
                ("is_retake_eligible", models.BooleanField(db_index=True, default=False)),
                ("dropout_risk_score", models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MaxValueValidator(100)])),
                ("verification_token", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("reference", models.CharField(max_length=32, unique=True)),
                ("archived_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("campus", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="results", to="core.campus")),
                ("class_manager", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("deleted_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("grading_scale", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="results", to="results.gradingscale")),
                ("published_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("retake_of", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="retakes", to="results.result")),
                ("school_class", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="results", to="classes.schoolclass")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="results", to="students.student")),
                ("subject", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="results", to="subjects.subject")),
                ("submitted_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("teacher", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="results", to="teachers.teacher")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.AddConstraint(
            model_name="result",
            constraint=models.UniqueConstraint(condition=models.Q(("is_deleted", False)), fields=("student", "subject", "evaluation_type", "evaluation_title", "academic_year", "semester"), name="uniq_result_per_evaluation_alive"),
        ),
        migrations.AddIndex(
            model_name="result",
            index=models.Index(fields=["campus", "academic_year", "semester"], name="results_res_campus__6b1c2e_idx"),
        ),
        migrations.AddIndex(
            model_name="result",
            index=models.Index(fields=["school_class", "subject", "academic_year"], name="results_res_school__3f0a9d_idx"),
        ),
        migrations.AddIndex(
            model_name="result",
            index=models.Index(fields=["student", "academic_year", "semester"], name="results_res_student_8d4e71_idx"),
        ),
        migrations.CreateModel(
            name="ResultAuditEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("modified_at", models.DateTimeField(auto_now_add=True)),
                ("field", models.CharField(max_length=50)),
                ("old_value", models.JSONField(blank=True, null=True)),
                ("new_value", models.JSONField(blank=True, null=True)),
                ("reason", models.CharField(max_length=500)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("modified_by", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("result", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="audit_entries", to="results.result")),
            ],
            options={
                "verbose_name": "Result audit entry",
                "verbose_name_plural": "Result audit entries",
                "ordering": ["modified_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="FinalTranscript",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("academic_year", models.CharField(max_length=9, validators=[django.core.validators.RegexValidator(message="Academic year must be in format YYYY-YYYY (e.g. 2024-2025).", regex="^\\d{4}-\\d{4}$")])),
                ("semester", models.CharField(choices=[("S1", "Semester 1"), ("S2", "Semester 2"), ("Annual", "Annual")], max_length=10)),
                ("subjects", models.JSONField(blank=True, default=list)),
                ("general_average", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("class_rank", models.PositiveIntegerField(blank=True, null=True)),
                ("class_total", models.PositiveIntegerField(blank=True, null=True)),
                ("decision", models.CharField(blank=True, max_length=200)),
                ("general_appreciation", models.CharField(blank=True, max_length=1000)),
                ("verification_token", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("VALIDATED", "Validated"), ("SEALED", "Sealed")], db_index=True, default="DRAFT", max_length=20)),
                ("validated_at", models.DateTimeField(blank=True, null=True)),
                ("sealed_at", models.DateTimeField(blank=True, null=True)),
                ("parent_signature", models.JSONField(blank=True, null=True)),
                ("generated_at", models.DateTimeField(blank=True, null=True)),
                ("campus", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="final_transcripts", to="core.campus")),
                ("generated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("school_class", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="final_transcripts", to="classes.schoolclass")),
                ("sealed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="final_transcripts", to="students.student")),
                ("validated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-academic_year", "semester", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="finaltranscript",
            constraint=models.UniqueConstraint(fields=("student", "academic_year", "semester"), name="uniq_transcript_per_student_period"),
        ),
        migrations.AddIndex(
            model_name="finaltranscript",
            index=models.Index(fields=["campus", "academic_year", "semester", "status"], name="results_fin_campus__a27c5b_idx"),
        ),
    ]
