from utils.cleanup import cleanup_expired_files, file_timestamp

NOW = 1_700_000_000
NS = 1_000_000_000


def touch(directory, name):
    path = directory / name
    path.write_bytes(b"x")
    return path


def test_file_timestamp():
    assert file_timestamp(f"enhanced_{NOW * NS}.jpg") == NOW
    assert file_timestamp(f"{NOW * NS}.png") == NOW
    assert file_timestamp(f"{NOW * NS}") == NOW
    assert file_timestamp("index.html") is None
    assert file_timestamp("enhanced_abc.jpg") is None


def test_deletes_only_expired_known_files(tmp_path):
    old_result = touch(tmp_path, f"enhanced_{(NOW - 7200) * NS}.jpg")
    old_upload = touch(tmp_path, f"{(NOW - 3601) * NS}.png")
    fresh = touch(tmp_path, f"enhanced_{(NOW - 60) * NS}.jpg")
    foreign = touch(tmp_path, "systemd-private.log")

    result = cleanup_expired_files(tmp_path, max_age_seconds=3600, now=NOW)

    assert result == {"processed": 3, "deleted": 2}
    assert not old_result.exists()
    assert not old_upload.exists()
    assert fresh.exists()
    assert foreign.exists()


def test_missing_directory(tmp_path):
    assert cleanup_expired_files(tmp_path / "gone") == {"processed": 0, "deleted": 0}


def test_works_with_storage_names(storage):
    name, path = storage.write_artifact(b"x")
    assert cleanup_expired_files(storage.directory, max_age_seconds=3600)["deleted"] == 0
    assert cleanup_expired_files(storage.directory, max_age_seconds=0,
                                 now=file_timestamp(name) + 10)["deleted"] == 1
    assert not path.exists()


def test_leaves_foreign_digit_named_files_alone(tmp_path):
    pid_file = touch(tmp_path, "42.pid")
    bare = touch(tmp_path, "1234")
    long_ext = touch(tmp_path, f"{(NOW - 7200) * NS}.backup-old")
    expired = touch(tmp_path, f"{(NOW - 7200) * NS}.jpg")

    result = cleanup_expired_files(tmp_path, max_age_seconds=3600, now=NOW)

    assert result == {"processed": 1, "deleted": 1}
    assert pid_file.exists() and bare.exists() and long_ext.exists()
    assert not expired.exists()
    assert file_timestamp("42.pid") is None
    assert file_timestamp("enhanced_1234.jpg") is None
