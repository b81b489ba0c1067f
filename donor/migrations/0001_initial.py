from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Donor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('donor_id', models.CharField(max_length=64, unique=True)),
                ('owner', models.CharField(db_index=True, max_length=150)),
                ('name', models.CharField(max_length=120)),
                ('bloodgroup', models.CharField(choices=[('O-', 'O-'), ('O+', 'O+'), ('A-', 'A-'), ('A+', 'A+'), ('B-', 'B-'), ('B+', 'B+'), ('AB-', 'AB-'), ('AB+', 'AB+')], max_length=3)),
                ('location', models.CharField(max_length=120)),
                ('contact_info', models.CharField(max_length=255)),
                ('no_chronic_illness', models.BooleanField(default=False)),
                ('no_recent_surgery', models.BooleanField(default=False)),
                ('eligible_to_donate', models.BooleanField(default=False)),
                ('health_notes', models.TextField(blank=True)),
                ('is_available', models.BooleanField(default=True)),
                ('availability_updated_at', models.DateTimeField(blank=True, null=True)),
                ('donation_history', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['name', 'id'],
                'indexes': [models.Index(fields=['bloodgroup', 'location'], name='donor_bloodgroup_location_idx')],
            },
        ),
    ]
