from nekopad.services.settings_service import SettingsService
from nekopad.utils.constants import MAX_RECENTS


def test_settings_roundtrip_geometry(settings_service: SettingsService):
    blob = b"\x01\x02\x03"
    settings_service.set_geometry(blob)
    got = settings_service.get_geometry()
    assert isinstance(got, (bytes, bytearray))
    assert bytes(got) == blob


def test_settings_recents(settings_service: SettingsService):
    assert settings_service.get_recent() == []  # default
    r = ["a.txt", "b.txt"]
    settings_service.set_recent(r)
    assert settings_service.get_recent() == r


def test_add_recent_moves_to_front_and_caps(settings_service: SettingsService):
    for i in range(MAX_RECENTS + 2):
        settings_service.add_recent(f"{i}.txt")
    items = settings_service.add_recent("3.txt")
    assert items[0] == "3.txt"
    assert items.count("3.txt") == 1
    assert len(settings_service.get_recent()) == MAX_RECENTS


def test_autosave_defaults_on_and_persists(settings_service: SettingsService):
    assert settings_service.get_autosave_enabled() is True
    settings_service.set_autosave_enabled(False)
    assert settings_service.get_autosave_enabled() is False


def test_working_directory_roundtrip(settings_service: SettingsService):
    assert settings_service.get_working_directory() == (None, None)
    settings_service.set_working_directory("/tmp/notes", "token")
    assert settings_service.get_working_directory() == ("/tmp/notes", "token")

    # a bookmark is never kept without its path
    settings_service.set_working_directory(None, "token")
    assert settings_service.get_working_directory() == (None, None)
