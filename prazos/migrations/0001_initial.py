import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

UF_CHOICES = [
    ('AC', 'Acre'), ('AL', 'Alagoas'), ('AP', 'Amapá'), ('AM', 'Amazonas'), ('BA', 'Bahia'),
    ('CE', 'Ceará'), ('DF', 'Distrito Federal'), ('ES', 'Espírito Santo'), ('GO', 'Goiás'),
    ('MA', 'Maranhão'), ('MT', 'Mato Grosso'), ('MS', 'Mato Grosso do Sul'),
    ('MG', 'Minas Gerais'), ('PA', 'Pará'), ('PB', 'Paraíba'), ('PR', 'Paraná'),
    ('PE', 'Pernambuco'), ('PI', 'Piauí'), ('RJ', 'Rio de Janeiro'),
    ('RN', 'Rio Grande do Norte'), ('RS', 'Rio Grande do Sul'), ('RO', 'Rondônia'),
    ('RR', 'Roraima'), ('SC', 'Santa Catarina'), ('SP', 'São Paulo'), ('SE', 'Sergipe'),
    ('TO', 'Tocantins'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CourtCalendar',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tribunal_codigo', models.CharField(max_length=20, unique=True)),
                ('nome', models.CharField(blank=True, max_length=255)),
                ('uf', models.CharField(blank=True, choices=UF_CHOICES, max_length=2, null=True)),
            ],
            options={
                'db_table': 'court_calendar',
                'ordering': ['tribunal_codigo'],
            },
        ),
        migrations.CreateModel(
            name='Holiday',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('data', models.DateField(db_index=True)),
                ('nome', models.CharField(max_length=255)),
                ('tipo', models.CharField(choices=[('NACIONAL', 'Nacional'), ('ESTADUAL', 'Estadual')], default='NACIONAL', max_length=20)),
                ('uf', models.CharField(blank=True, choices=UF_CHOICES, max_length=2, null=True)),
            ],
            options={
                'db_table': 'holiday',
                'ordering': ['data'],
                'constraints': [models.UniqueConstraint(fields=('data', 'uf', 'nome'), name='unique_holiday')],
            },
        ),
        migrations.CreateModel(
            name='CourtHoliday',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('data', models.DateField(db_index=True)),
                ('nome', models.CharField(max_length=255)),
                ('tipo', models.CharField(choices=[('NACIONAL', 'Nacional'), ('ESTADUAL', 'Estadual'), ('MUNICIPAL', 'Municipal'), ('FORENSE', 'Forense'), ('PONTO_FACULTATIVO', 'Ponto facultativo')], default='FORENSE', max_length=20)),
                ('suspende_expediente', models.BooleanField(default=True)),
                ('prazos_prorrogados', models.BooleanField(default=True)),
                ('fundamento_legal', models.CharField(blank=True, max_length=255)),
                ('calendar', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='holidays', to='prazos.courtcalendar')),
            ],
            options={
                'db_table': 'court_holiday',
                'ordering': ['data'],
            },
        ),
        migrations.CreateModel(
            name='CourtSuspension',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tipo', models.CharField(choices=[('RECESSO_DEZ_JAN', 'Recesso dezembro/janeiro'), ('FERIAS_JULHO', 'Férias de julho'), ('SUSPENSAO_PRAZOS_ART220', 'Suspensão de prazos (Art. 220 CPC)'), ('SUSPENSAO_PORTARIA', 'Suspensão por portaria'), ('INDISPONIBILIDADE_SISTEMA', 'Indisponibilidade do sistema'), ('LUTO_OFICIAL', 'Luto oficial'), ('CALAMIDADE', 'Calamidade'), ('ELEICOES', 'Eleições'), ('OPERACAO_ESPECIAL', 'Operação especial')], default='SUSPENSAO_PORTARIA', max_length=30)),
                ('nome', models.CharField(max_length=255)),
                ('data_inicio', models.DateField()),
                ('data_fim', models.DateField()),
                ('suspende_prazos', models.BooleanField(default=True)),
                ('suspende_audiencias', models.BooleanField(default=True)),
                ('fundamento_legal', models.CharField(blank=True, max_length=255)),
                ('calendar', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='suspensions', to='prazos.courtcalendar')),
            ],
            options={
                'db_table': 'court_suspension',
                'ordering': ['data_inicio'],
            },
        ),
        migrations.CreateModel(
            name='CalendarExtraction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tribunal_codigo', models.CharField(max_length=20)),
                ('filename', models.CharField(max_length=255)),
                ('file_size', models.IntegerField()),
                ('status', models.CharField(choices=[('PROCESSADO', 'Processado'), ('IMPORTADO', 'Importado'), ('ERRO', 'Erro')], default='PROCESSADO', max_length=20)),
                ('feriados', models.JSONField(blank=True, default=list)),
                ('suspensoes', models.JSONField(blank=True, default=list)),
                ('erro_processamento', models.TextField(blank=True)),
                ('prompt_tokens', models.IntegerField(blank=True, null=True)),
                ('completion_tokens', models.IntegerField(blank=True, null=True)),
                ('total_tokens', models.IntegerField(blank=True, null=True)),
                ('model_name', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='calendar_extractions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'calendar_extraction',
                'ordering': ['-created_at'],
            },
        ),
    ]
