from django.contrib.auth.models import AbstractUser


class CustomUser(AbstractUser):
    """
    Firm staff member (lawyer, paralegal) with access to the deadline tools.

    Kept as a custom model so OAB registration or team fields can be added
    without swapping AUTH_USER_MODEL later.
    """

    pass
