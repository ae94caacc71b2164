from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('leaderboards', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Submission',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('full_name', models.CharField(max_length=120)),
                ('email', models.EmailField(max_length=254)),
                ('gender', models.CharField(choices=[('male', 'Masculino'), ('female', 'Femenino'), ('other', 'Otro')], default='male', max_length=8)),
                ('value_raw', models.BigIntegerField()),
                ('value_display', models.CharField(max_length=64)),
                ('status', models.CharField(choices=[('PENDING', 'Pendiente'), ('APPROVED', 'Aprobado'), ('REJECTED', 'Rechazado')], default='PENDING', max_length=8)),
                ('manual_rank', models.PositiveIntegerField(blank=True, null=True)),
                ('proof_url', models.URLField(blank=True, default='')),
                ('video', models.FileField(blank=True, upload_to='video-proofs/%Y/%m/')),
                ('notes', models.TextField(blank=True, default='')),
                ('rejection_reason', models.TextField(blank=True, default='')),
                ('submission_metadata', models.JSONField(blank=True, default=dict)),
                ('is_manual_entry', models.BooleanField(default=False)),
                ('submitted_at', models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderated_submissions', to=settings.AUTH_USER_MODEL)),
                ('leaderboard', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='submissions', to='leaderboards.leaderboard')),
            ],
            options={
                'ordering': ('-submitted_at',),
                'indexes': [models.Index(fields=['leaderboard', 'status'], name='submission_lb_status_idx')],
            },
        ),
    ]
