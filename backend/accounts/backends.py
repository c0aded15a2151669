"""
Custom authentication backend for username-or-email login.

Registered in ``settings.AUTHENTICATION_BACKENDS`` so that Django's
``authenticate()`` call dispatches to it.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q

User = get_user_model()


class UsernameOrEmailBackend(ModelBackend):
    """
    Authenticate against ``username`` or ``email``.

    Accepts either ``identifier=`` (the login endpoint) or the standard
    ``username=`` keyword (Django admin login form).
    """

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        """
        Resolve the user by *identifier* and verify *password*.

        Parameters
        ----------
        request : HttpRequest | None
        identifier : str
            Username or email address.
        password : str
            The raw password to verify.

        Returns
        -------
        User | None
            The authenticated user, or ``None`` on failure.
        """
        if identifier is None:
            identifier = kwargs.get(User.USERNAME_FIELD)
        if identifier is None or password is None:
            return None

        try:
            user = User.objects.get(
                Q(username=identifier) | Q(email__iexact=identifier)
            )
        except User.DoesNotExist:
            # Run the default password hasher to mitigate timing attacks
            User().set_password(password)
            return None
        except User.MultipleObjectsReturned:
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
