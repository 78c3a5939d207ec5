"""
AuthService registration: Supabase Auth sign-up plus the profile row, and the
self-registration role switch.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from fastapi.exceptions import RequestValidationError

from app.config.settings import settings
from app.modules.auth.schemas import RegisterRequest
from app.modules.auth.service import AuthService

from factories import ok


class TestRegister:
    def setup_method(self):
        self.supabase = MagicMock()
        self.supabase.auth.sign_up.return_value = SimpleNamespace(
            user=SimpleNamespace(id="user-1", email="new@example.com")
        )
        self.service = AuthService(self.supabase)
        self.service.db = MagicMock()
        self.service.db.create_profile.return_value = ok({"id": "user-1"})

    def _request(self, role):
        return RegisterRequest(email="new@example.com", password="long-enough", name="New User", role=role)

    def test_inspector_registers(self):
        with patch.object(settings, "self_register_roles", "INSPECTOR"):
            result = self.service.register(self._request("INSPECTOR"))

        assert result.role.value == "INSPECTOR"
        profile = self.service.db.create_profile.call_args.args[0]
        assert profile["role"] == "INSPECTOR"
        assert profile["is_active"] is True

    def test_elevated_role_refused_when_restricted(self):
        with patch.object(settings, "self_register_roles", "INSPECTOR"):
            with pytest.raises(RequestValidationError) as exc:
                self.service.register(self._request("EXECUTIVE"))

        assert exc.value.errors()[0]["loc"] == ("body", "role")
        self.supabase.auth.sign_up.assert_not_called()
        self.service.db.create_profile.assert_not_called()

    def test_default_allows_every_role(self):
        assert settings.get_self_register_roles_list() == ["INSPECTOR", "PROJECT_MANAGER", "EXECUTIVE"]
        result = self.service.register(self._request("PROJECT_MANAGER"))
        assert result.role.value == "PROJECT_MANAGER"
