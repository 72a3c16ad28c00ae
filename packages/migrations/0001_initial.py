import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('students', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Package',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('round_number', models.PositiveIntegerField(default=1)),
                ('start_date', models.DateField(db_index=True)),
                ('total_hours', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('remaining_hours', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('total_classes', models.PositiveIntegerField(default=0)),
                ('remaining_classes', models.PositiveIntegerField(default=0)),
                ('hour_price', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('status', models.CharField(choices=[('active', 'Active'), ('finished', 'Finished (pending payment)'), ('paid', 'Paid')], db_index=True, default='active', max_length=20)),
                ('last_notification_sent', models.DateTimeField(blank=True, null=True)),
                ('notification_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='packages', to='students.student')),
            ],
            options={
                'verbose_name': 'Package',
                'verbose_name_plural': 'Packages',
                'db_table': 'packages',
                'ordering': ['student', 'round_number'],
                'indexes': [models.Index(fields=['student', 'status'], name='packages_student_status_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('student', 'round_number'), name='unique_student_package_round'),
                    models.UniqueConstraint(condition=models.Q(('status', 'active')), fields=('student',), name='unique_active_package_per_student'),
                ],
            },
        ),
    ]
