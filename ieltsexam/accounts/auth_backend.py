"""
Custom authentication backend - log in with username or email
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q


class UsernameOrEmailBackend(ModelBackend):
    """
    Authenticate UserProfile by username or email and password
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        identifier = kwargs.get('email', username)
        if not identifier or password is None:
            return None

        UserModel = get_user_model()
        identifier = str(identifier).strip()
        user = UserModel.objects.filter(
            Q(username__iexact=identifier) | Q(email__iexact=identifier)
        ).first()

        if user is None:
            # Same hashing cost for unknown users
            UserModel().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
