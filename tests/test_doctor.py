from unittest.mock import MagicMock, patch

from postdeploy.doctor import doctor_report


def _items(report):
    return {i.name: i for i in report.items}


def test_doctor_missing_docker_and_compose_file(tmp_path):
    with patch("postdeploy.doctor.which", return_value=None):
        report = doctor_report(tmp_path)
    items = _items(report)
    assert not report.ok
    assert items["compose file"].status == "FAIL"
    assert items["docker binary"].status == "FAIL"
    assert items["storage dir"].status == "INFO"
    assert items["setup.yaml"].status == "INFO"


def test_doctor_all_good(tmp_path):
    (tmp_path / "docker-compose.yml").write_text("services: {}\n")
    (tmp_path / "storage").mkdir()
    ok_res = MagicMock(ok=True, returncode=0)
    ok_res.read_stdout.return_value = "Docker Compose version v2.29.0\n"
    with (
        patch("postdeploy.doctor.which", side_effect=lambda name: f"/usr/bin/{name}"),
        patch("postdeploy.doctor.run_cmd", return_value=ok_res),
    ):
        report = doctor_report(tmp_path)
    items = _items(report)
    assert report.ok
    assert items["compose plugin"].details == "Docker Compose version v2.29.0"
    assert items["docker daemon"].status == "OK"
    assert items["sudo"].status == "OK"
    assert items["storage dir"].status == "OK"


def test_doctor_invalid_setup_yaml(tmp_path):
    (tmp_path / ".postdeploy").mkdir()
    (tmp_path / ".postdeploy" / "setup.yaml").write_text("wait: {mode: never}\n")
    with patch("postdeploy.doctor.which", return_value=None):
        report = doctor_report(tmp_path)
    assert not report.ok
    assert _items(report)["setup.yaml"].status == "FAIL"
