from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Leaderboard',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=160)),
                ('slug', models.SlugField(max_length=80, unique=True)),
                ('description', models.TextField(blank=True)),
                ('rules', models.TextField(blank=True)),
                ('metric_type', models.CharField(choices=[('time', 'Tiempo'), ('reps', 'Repeticiones'), ('distance', 'Distancia'), ('weight', 'Peso')], default='time', max_length=16)),
                ('sort_direction', models.CharField(choices=[('asc', 'Menor es mejor'), ('desc', 'Mayor es mejor')], default='asc', max_length=4)),
                ('unit', models.CharField(blank=True, help_text='Etiqueta para la columna de valor.', max_length=32)),
                ('smart_time_parsing', models.BooleanField(default=True, help_text="Solo para tiempo: acepta '1h 30m', '12mins 30sec' además de mm:ss.")),
                ('auto_approve', models.BooleanField(default=False, help_text='Los envíos públicos entran aprobados.')),
                ('requires_verification', models.BooleanField(default=False, help_text='Exige link de prueba o video en cada envío.')),
                ('submission_deadline', models.DateTimeField(blank=True, null=True)),
                ('submissions_per_user', models.PositiveIntegerField(blank=True, help_text='Máximo de envíos por email (vacío = ilimitado).', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='leaderboards', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ('-created_at', 'title'),
            },
        ),
    ]
