from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('principal', models.CharField(max_length=150, unique=True)),
                ('name', models.CharField(max_length=120)),
                ('role', models.CharField(choices=[('requester', 'Requester'), ('donor', 'Donor'), ('both', 'Both')], default='requester', max_length=10)),
                ('contact_info', models.CharField(blank=True, max_length=255)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'User Profile',
                'verbose_name_plural': 'User Profiles',
                'ordering': ['principal'],
            },
        ),
    ]
