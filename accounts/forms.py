from django.contrib.auth.forms import UserCreationForm

from .models import CustomUser


class CustomUserCreationForm(UserCreationForm):
    """Self-registration form for firm staff."""

    class Meta(UserCreationForm.Meta):
        model = CustomUser
        fields = ('username', 'email')
