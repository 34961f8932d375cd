from balena_cli.adapters.errors import ApiRequestError
from balena_cli.application import fleets, releases
from balena_cli.application.api_calls import call_api
from balena_cli.domain.identifiers import FleetRef, ReleaseRef
from balena_cli.domain.models import Fleet, Release


class FakeApi:
    def __init__(self):
        self.calls = []

    def get_fleet(self, fleet):
        self.calls.append(("get_fleet", fleet))
        return Fleet(id=5, app_name="MyFleet", slug="org/myfleet")

    def create_fleet(self, name, device_type):
        self.calls.append(("create_fleet", name, device_type))
        return Fleet(id=6, app_name=name, slug=f"org/{name.lower()}", device_type=device_type)

    def list_releases(self, fleet):
        self.calls.append(("list_releases", fleet))
        return [Release(id=1, commit="deadbeef")]

    def get_release(self, release):
        self.calls.append(("get_release", release))
        return Release(id=1, commit="deadbeef")


def test_fleet_info_parses_identifier():
    api = FakeApi()
    assert fleets.fleet_info(api, "5").value.app_name == "MyFleet"
    assert api.calls == [("get_fleet", FleetRef("id", 5))]


def test_create_fleet_validates_name_and_type():
    api = FakeApi()
    result = fleets.create_fleet(api, "x", "Not A Type")
    assert sorted(d.code for d in result.errors) == ["DEVICE_TYPE_INVALID", "FLEET_NAME_INVALID"]
    assert api.calls == []


def test_create_fleet_calls_api():
    result = fleets.create_fleet(FakeApi(), "MyFleet", "raspberrypi4-64")
    assert result.value.device_type == "raspberrypi4-64"


def test_releases_for_fleet():
    api = FakeApi()
    assert releases.list_releases(api, "MyFleet").value[0].commit == "deadbeef"
    assert api.calls == [("list_releases", FleetRef("name", "MyFleet"))]


def test_release_info_validates_commit():
    api = FakeApi()
    assert releases.release_info(api, "zzz").errors[0].code == "RELEASE_COMMIT_INVALID"
    assert releases.release_info(api, "42").ok
    assert api.calls == [("get_release", ReleaseRef("id", 42))]


def test_call_api_turns_adapter_errors_into_diagnostics():
    def fail():
        raise ApiRequestError("connection refused", hint="check your network")

    result = call_api(fail, rule="test.rule")
    diag = result.errors[0]
    assert diag.code == "API_REQUEST_FAILED"
    assert diag.hint == "check your network"
    assert diag.is_execution
