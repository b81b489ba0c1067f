from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('donor', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='BloodRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('request_id', models.CharField(max_length=64, unique=True)),
                ('owner', models.CharField(db_index=True, max_length=150)),
                ('recipient_name', models.CharField(max_length=120)),
                ('bloodgroup', models.CharField(choices=[('O-', 'O-'), ('O+', 'O+'), ('A-', 'A-'), ('A+', 'A+'), ('B-', 'B-'), ('B+', 'B+'), ('AB-', 'AB-'), ('AB+', 'AB+')], max_length=3)),
                ('location', models.CharField(max_length=120)),
                ('urgency', models.CharField(choices=[('critical', 'Critical'), ('urgent', 'Urgent'), ('moderate', 'Moderate')], max_length=20)),
                ('contact_info', models.CharField(max_length=255)),
                ('units_required', models.PositiveIntegerField(default=1)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('searching', 'Searching'), ('donor_contacted', 'Donor Contacted'), ('matched', 'Matched'), ('fulfilled', 'Fulfilled'), ('expired', 'Expired')], default='pending', max_length=20)),
                ('time_created', models.DateTimeField()),
                ('status_changed_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'ordering': ['-time_created', '-id'],
                'indexes': [
                    models.Index(fields=['status', 'bloodgroup'], name='request_status_group_idx'),
                    models.Index(fields=['owner', '-time_created'], name='request_owner_created_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(units_required__gte=1), name='bloodrequest_units_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DonorInterest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('timestamp', models.DateTimeField()),
                ('blood_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='interests', to='blood.bloodrequest')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='interests', to='donor.donor')),
            ],
            options={
                'ordering': ['blood_request__request_id', 'donor__donor_id'],
                'constraints': [
                    models.UniqueConstraint(fields=('blood_request', 'donor'), name='unique_interest_per_request_donor'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MatchConfirmation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('confirmed_by', models.CharField(max_length=150)),
                ('confirmed_at', models.DateTimeField()),
                ('blood_request', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='match', to='blood.bloodrequest')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='matches', to='donor.donor')),
            ],
            options={
                'verbose_name': 'Match Confirmation',
                'verbose_name_plural': 'Match Confirmations',
                'ordering': ['blood_request__request_id', 'donor__donor_id'],
            },
        ),
    ]
