"""End-to-end tests for ProvisioningWizard with a fake platform."""
import pytest
import typer

from ctwizard.core.errors import (
    IncompleteCoverageError,
    OperatorDeclinedError,
    PlatformCommandError,
    PreflightError,
)
from ctwizard.core.wizard import ProvisioningWizard
from ctwizard.models.container import ContainerInfo
from ctwizard.models.storage import StorageMount, StoragePool
from tests.conftest import FakeProbe, ScriptedPrompter


class RecordingModules:
    def __init__(self):
        self.ensured = []

    def ensure(self, names=None):
        self.ensured.append(list(names))


def _wizard(platform, probe, defaults, requirements, workspace, answers, modules=None):
    prompter = ScriptedPrompter(answers)
    wizard = ProvisioningWizard(
        platform, probe, prompter, defaults, requirements, workspace, modules=modules
    )
    return wizard, prompter


class TestExpressPath:

    def test_accepting_all_defaults(self, platform, probe, defaults, requirements, workspace):
        modules = RecordingModules()
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace,
                                   [True, True], modules=modules)

        session = wizard.run()

        assert session.express
        assert modules.ensured == [["aufs", "overlay"]]
        spec = platform.created[0]
        assert (spec.vmid, spec.hostname, spec.storage) == (111, "jellyfin", "local-zfs")
        assert spec.network.ip == "192.168.50.111"
        assert spec.network.gateway == "192.168.50.5"
        assert spec.network.tag == 50
        assert spec.resources.disk == 20
        assert spec.resources.memory == 2048
        assert platform.mounts == [
            (111, 0, StorageMount("nas-01-media", "/mnt/media")),
            (111, 1, StorageMount("nas-01-backups", "/mnt/backups")),
        ]
        assert prompter.answers == []

    def test_express_not_offered_when_a_default_is_taken(self, platform, probe, defaults,
                                                         requirements, workspace):
        platform.containers.append(ContainerInfo(vmid=111, name="legacy", status="stopped"))
        # hostname, ip, ctid suggestion, disk, ram all take their defaults
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace,
                                   [None, None, None, None, None, True, True])

        session = wizard.run()

        assert not session.express
        assert session.ctid == 200
        assert "in use by another CT labelled \"legacy\"" in prompter.output


class TestStandardPath:

    def test_defaults_entered_one_by_one(self, platform, probe, defaults, requirements, workspace):
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace,
                                   [False, None, None, None, None, True, True])

        session = wizard.run()

        assert not session.express
        assert session.hostname == "jellyfin"
        assert session.gateway == "192.168.50.5"
        assert session.ctid == 111
        assert len(platform.created) == 1

    def test_non_standard_values(self, platform, defaults, requirements, workspace):
        probe = FakeProbe(reachable={"192.168.50.5", "192.168.30.1"}, gateway="192.168.1.1")
        answers = [
            False,                # express
            "media", True,        # custom hostname, accept
            "192.168.50.100",     # allocated to CT 100
            "192.168.30.60", True, True,  # VLAN ready, accept anyway
            None,                 # gateway prefill 192.168.30.xxx is malformed
            "192.168.30.1",
            "32",
            "abc", "4096",
            True,                 # bulk accept mounts
            True,                 # create
        ]
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace, answers)

        session = wizard.run()

        assert session.hostname == "media"
        assert session.ip == "192.168.30.60"
        assert session.vlan_tag == 30
        assert session.gateway == "192.168.30.1"
        assert session.ctid == 160
        assert session.disk_size == 32
        assert session.ram == 4096
        assert "already assigned to PVE CT 100" in prompter.output
        assert "incorrectly formatted" in prompter.output
        assert platform.created[0].network.tag == 30

    def test_declined_hostname_is_not_committed(self, platform, probe, defaults, requirements, workspace):
        answers = [False, "media", False, None, None, None, None, True, True]
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, answers)

        session = wizard.run()

        assert session.hostname == "jellyfin"

    def test_declined_ip_is_not_committed(self, platform, probe, defaults, requirements, workspace):
        answers = [False, None, "192.168.30.60", False, "192.168.50.111", None, None, True, True]
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, answers)

        session = wizard.run()

        assert session.ip == "192.168.50.111"
        assert session.vlan_tag == 50

    def test_vlan1_address_uses_host_gateway(self, platform, probe, defaults, requirements, workspace):
        answers = [False, None, "192.168.1.60", True, None, None, True, True]
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, answers)

        session = wizard.run()

        assert session.vlan_tag == 1
        assert session.gateway == "192.168.1.1"
        assert session.ctid == 160

    def test_ctid_suggestion_also_taken(self, platform, probe, defaults, requirements, workspace):
        platform.containers.append(ContainerInfo(vmid=111, name="legacy", status="stopped"))
        answers = [None, None, "101", None, None, None, True, True]
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace, answers)

        session = wizard.run()

        assert session.ctid == 200
        assert "Try again" in prompter.output

    def test_superscript_digits_at_size_prompts_are_re_asked(self, platform, probe, defaults,
                                                             requirements, workspace):
        answers = [False, None, None, "\u00b2", "20", "\u0664", "2048", True, True]
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace, answers)

        session = wizard.run()

        assert (session.disk_size, session.ram) == (20, 2048)
        assert "is not a positive whole number" in prompter.output

    def test_multiple_root_storages(self, platform, probe, defaults, requirements, workspace):
        platform.rootdir = [StoragePool(name="local-lvm"), StoragePool(name="local-zfs")]
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, [1, True, True])

        session = wizard.run()

        assert session.storage == "local-lvm"


class TestFailures:

    def test_final_decline_is_fatal_and_creates_nothing(self, platform, probe, defaults,
                                                        requirements, workspace):
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, [True, False])

        with pytest.raises(OperatorDeclinedError) as exc:
            wizard.run()

        assert exc.value.step == "confirm"
        assert platform.created == []
        assert platform.destroyed == []
        assert workspace.path is None

    def test_missing_storage_role_aborts(self, platform, probe, defaults, requirements, workspace):
        platform.pools = [StoragePool(name="local"), StoragePool(name="nas-01-media")]
        answers = [None, None, None, None, True, 1, True]
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace, answers)

        with pytest.raises(IncompleteCoverageError) as exc:
            wizard.run()

        assert exc.value.missing == ["backups"]
        assert exc.value.step == "bind-mounts"
        assert platform.created == []
        assert wizard.session.mounts == []

    def test_create_failure_frees_orphan_volumes(self, platform, probe, defaults, requirements, workspace):
        platform.fail_create = PlatformCommandError(["pct", "create", "111"], 25, step="create")
        platform.volumes[111] = ["local-zfs:subvol-111-disk-0"]
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, [True, True])

        with pytest.raises(PlatformCommandError) as exc:
            wizard.run()

        assert exc.value.step == "create"
        assert exc.value.exit_code == 25
        assert platform.freed == ["local-zfs:subvol-111-disk-0"]

    def test_mount_failure_destroys_container(self, platform, probe, defaults, requirements, workspace):
        platform.fail_mount = PlatformCommandError(["pct", "set", "111"], 255, step="bind-mounts")
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, [True, True])

        with pytest.raises(PlatformCommandError):
            wizard.run()

        assert platform.destroyed == [111]

    def test_incomplete_cleanup_is_reported(self, platform, probe, defaults, requirements, workspace):
        platform.fail_mount = PlatformCommandError(["pct", "set", "111"], 255, step="bind-mounts")

        def broken_destroy(vmid):
            raise PlatformCommandError(["pct", "destroy", str(vmid)], 2)

        platform.destroy_container = broken_destroy
        wizard, prompter = _wizard(platform, probe, defaults, requirements, workspace, [True, True])

        with pytest.raises(PlatformCommandError):
            wizard.run()

        assert "Cleanup of CT 111 was incomplete" in prompter.output
        assert workspace.path is None

    def test_interrupt_before_create_leaves_platform_alone(self, platform, probe, defaults,
                                                          requirements, workspace):
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, [False, typer.Abort()])

        with pytest.raises(typer.Abort):
            wizard.run()

        assert wizard.current_step == "hostname"
        assert platform.destroyed == []
        assert workspace.path is None

    def test_no_root_storage(self, platform, probe, defaults, requirements, workspace):
        platform.rootdir = []
        wizard, _ = _wizard(platform, probe, defaults, requirements, workspace, [])

        with pytest.raises(PreflightError) as exc:
            wizard.run()

        assert exc.value.step == "storage"
