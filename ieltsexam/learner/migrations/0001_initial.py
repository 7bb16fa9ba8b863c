import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Badge',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100, unique=True)),
                ('description', models.TextField(blank=True, default='')),
                ('badge_type', models.CharField(choices=[('streak', 'Streak'), ('tests', 'Tests'), ('vocabulary', 'Vocabulary'), ('score', 'Score'), ('level', 'Level'), ('special', 'Special')], max_length=20)),
                ('rarity', models.CharField(choices=[('common', 'Common'), ('uncommon', 'Uncommon'), ('rare', 'Rare'), ('epic', 'Epic'), ('legendary', 'Legendary')], default='common', max_length=20)),
                ('image_url', models.CharField(blank=True, default='', max_length=500)),
                ('module_type', models.CharField(blank=True, choices=[('tests_completed', 'Tests Completed'), ('vocabulary_added', 'Vocabulary Added'), ('vocabulary_reviewed', 'Vocabulary Reviewed'), ('login_streak', 'Login Streak'), ('total_points', 'Total Points'), ('highest_score', 'Highest Score')], max_length=30, null=True)),
                ('required_count', models.PositiveIntegerField(blank=True, null=True)),
                ('required_score', models.PositiveIntegerField(blank=True, null=True)),
                ('repeatable', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'badges',
                'ordering': ['badge_type', 'required_count', 'name'],
            },
        ),
        migrations.CreateModel(
            name='UserLevel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level', models.PositiveIntegerField(unique=True)),
                ('name', models.CharField(max_length=100)),
                ('required_points', models.PositiveIntegerField()),
                ('badge', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='levels', to='learner.badge')),
            ],
            options={
                'db_table': 'user_levels',
                'ordering': ['level'],
            },
        ),
        migrations.CreateModel(
            name='UserAchievement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('total_points', models.PositiveIntegerField(default=0)),
                ('current_level', models.PositiveIntegerField(default=1)),
                ('login_streak', models.PositiveIntegerField(default=0)),
                ('last_login_date', models.DateField(blank=True, null=True)),
                ('tests_completed', models.PositiveIntegerField(default=0)),
                ('vocabulary_added', models.PositiveIntegerField(default=0)),
                ('vocabulary_reviewed', models.PositiveIntegerField(default=0)),
                ('highest_score', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='achievement', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_achievements',
            },
        ),
        migrations.CreateModel(
            name='UserBadge',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('times_earned', models.PositiveIntegerField(default=1)),
                ('earned_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('last_earned_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('badge', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='holders', to='learner.badge')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='badges', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_badges',
                'ordering': ['-earned_at'],
                'constraints': [models.UniqueConstraint(fields=('user', 'badge'), name='one_user_badge_per_badge')],
            },
        ),
        migrations.CreateModel(
            name='PointHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action_type', models.CharField(choices=[('login_streak', 'Login Streak'), ('test_completion', 'Test Completion'), ('test_score', 'Test Score'), ('first_test', 'First Test'), ('perfect_score', 'Perfect Score'), ('vocabulary_add', 'Vocabulary Added'), ('vocabulary_review', 'Vocabulary Reviewed'), ('feedback_given', 'Feedback Given')], max_length=30)),
                ('points_awarded', models.PositiveIntegerField()),
                ('related_entity_type', models.CharField(blank=True, max_length=50, null=True)),
                ('related_entity_id', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='point_history', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'point_history',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('vocabulary_review', 'Vocabulary Review'), ('test_reminder', 'Test Reminder'), ('achievement', 'Achievement'), ('system', 'System')], max_length=30)),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField()),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], default='medium', max_length=10)),
                ('is_read', models.BooleanField(default=False)),
                ('action_link', models.CharField(blank=True, max_length=500, null=True)),
                ('scheduled_for', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'notifications',
                'ordering': ['-scheduled_for', '-created_at'],
                'indexes': [models.Index(fields=['user', 'is_read'], name='notifications_user_read_idx')],
            },
        ),
        migrations.CreateModel(
            name='Vocabulary',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('word', models.CharField(max_length=100)),
                ('cefr_level', models.CharField(choices=[('A1', 'A1'), ('A2', 'A2'), ('B1', 'B1'), ('B2', 'B2'), ('C1', 'C1'), ('C2', 'C2')], max_length=2)),
                ('word_family', models.CharField(blank=True, default='', max_length=255)),
                ('meaning', models.TextField()),
                ('example', models.TextField(blank=True, default='')),
                ('arabic_meaning', models.TextField(blank=True, default='')),
                ('review_stage', models.PositiveIntegerField(default=0)),
                ('last_reviewed', models.DateTimeField(blank=True, null=True)),
                ('next_review', models.DateTimeField()),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vocabulary', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'vocabulary',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['user', 'next_review'], name='vocabulary_user_due_idx')],
            },
        ),
    ]
