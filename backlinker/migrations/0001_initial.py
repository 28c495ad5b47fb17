from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Page',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('url', models.URLField(max_length=500)),
                ('key', models.CharField(max_length=500, unique=True)),
                ('title', models.CharField(blank=True, max_length=300)),
                ('content', models.TextField(blank=True)),
                ('summary', models.TextField(blank=True)),
                ('keywords', models.JSONField(blank=True, null=True)),
                ('indexed_at', models.DateTimeField(blank=True, null=True)),
                ('analyzed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Sentence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('page_url', models.URLField(max_length=500)),
                ('page_key', models.CharField(db_index=True, max_length=500)),
                ('page_title', models.CharField(blank=True, max_length=300)),
                ('text', models.TextField()),
                ('outbound_links', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Suggestion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('target_url', models.URLField(max_length=500)),
                ('target_key', models.CharField(max_length=500)),
                ('target_title', models.CharField(blank=True, max_length=300)),
                ('source_url', models.URLField(max_length=500)),
                ('source_key', models.CharField(max_length=500)),
                ('source_title', models.CharField(blank=True, max_length=300)),
                ('anchor_text', models.CharField(max_length=300)),
                ('anchor_origin', models.CharField(choices=[('title', 'Title-derived'), ('variation', 'Keyword variation')], max_length=16)),
                ('context', models.TextField(blank=True)),
                ('reason', models.TextField(blank=True)),
                ('review_status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('dismissed', 'Dismissed')], default='pending', max_length=16)),
                ('link_verified', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['created_at', 'id'],
                'indexes': [models.Index(fields=['link_verified', 'created_at'], name='suggestion_unverified_idx')],
                'constraints': [models.UniqueConstraint(fields=('target_key', 'source_key'), name='suggestion_target_source_unique')],
            },
        ),
    ]
