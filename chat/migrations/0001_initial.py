import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=[('system-admin', 'System admin'), ('admin', 'Admin'), ('moderator', 'Moderator'), ('chairperson', 'Chairperson'), ('vice-chair', 'Vice chair'), ('secretary', 'Secretary'), ('organizing-secretary', 'Organizing secretary'), ('treasurer', 'Treasurer'), ('general', 'General member')], default='general', help_text='Community role; controls chat moderation rights', max_length=32)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='ChatMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('author_username', models.CharField(db_index=True, help_text='Username of the sender', max_length=150)),
                ('author_role', models.CharField(default='general', help_text='Sender role snapshot taken when the message was sent', max_length=32)),
                ('body', models.TextField(help_text='Message text')),
                ('created_at', models.DateTimeField(db_index=True, help_text='Server-assigned creation timestamp')),
                ('reply_to', models.CharField(blank=True, help_text='Id of the message this one replies to', max_length=64, null=True)),
                ('reply_to_username', models.CharField(blank=True, help_text='Author of the replied message (snapshot)', max_length=150, null=True)),
                ('reply_to_content', models.TextField(blank=True, help_text='Text of the replied message (snapshot)', null=True)),
            ],
            options={
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ChatReaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('emoji', models.CharField(help_text='Reaction emoji', max_length=64)),
                ('username', models.CharField(help_text='Member who reacted', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Reaction timestamp')),
                ('message', models.ForeignKey(help_text='Message being reacted to', on_delete=django.db.models.deletion.CASCADE, related_name='reactions', to='chat.chatmessage')),
            ],
            options={
                'ordering': ['created_at', 'id'],
                'unique_together': {('message', 'emoji', 'username')},
            },
        ),
    ]
