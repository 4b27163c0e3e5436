from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('chat', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='chatreaction',
            name='emoji',
            field=models.TextField(help_text='Reaction emoji (any string)'),
        ),
    ]
