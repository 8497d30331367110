from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('prazos', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='calendarextraction',
            name='file_type',
            field=models.CharField(choices=[('PDF', 'PDF'), ('TEXTO', 'Texto colado')], default='PDF', max_length=50),
        ),
        migrations.AddField(
            model_name='calendarextraction',
            name='page_count',
            field=models.IntegerField(blank=True, null=True),
        ),
    ]
