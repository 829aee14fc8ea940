"""Unit tests for LinkRecorder — the prebuild/perform step lifecycle."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from intoto_recorder.core.collector import ArtifactCollector
from intoto_recorder.core.recorder import LinkRecorder, run_command
from intoto_recorder.core.signer import Ed25519Key, verify_signature
from intoto_recorder.errors import IOFailure, RecorderStateError, SigningFailure
from intoto_recorder.models.config import StepConfig
from intoto_recorder.models.link import LinkDocument

HELLO_SHA256 = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
GRAFEAS_URI = (
    "grafeas+https://store.example/api/occurrences"
    "?noteName=projects/p/notes/n&resourceUri=git://repo"
)


def _record(recorder: LinkRecorder, workspace: Path, **perform_kwargs):
    recorder.prebuild(workspace)
    (workspace / "a.txt").write_text("world")
    return recorder.perform(**perform_kwargs)


class TestLifecycle:
    def test_materials_and_products_snapshots(self, workspace: Path):
        (workspace / "a.txt").write_text("hello")
        recorder = LinkRecorder(StepConfig(step_name="edit"))

        started = recorder.prebuild(workspace)
        assert started.materials == {"a.txt": {"sha256": HELLO_SHA256}}
        assert started.products == {}

        (workspace / "a.txt").write_text("world")
        result = recorder.perform()
        link = result.document.signed
        assert link.materials["a.txt"]["sha256"] != link.products["a.txt"]["sha256"]
        assert recorder.link == link

    def test_step_name_with_separator_still_dumped(self, workspace: Path, tmp_path: Path):
        link_dir = tmp_path / "links"
        recorder = LinkRecorder(StepConfig(step_name="build/compile", link_dir=link_dir))
        result = _record(recorder, workspace)

        assert result.document.signed.name == "build/compile"
        assert result.local_path.parent == link_dir
        assert result.local_path.name.startswith("build_compile.")

    def test_empty_step_name_uses_step(self, workspace: Path):
        (workspace / "a.txt").write_text("hello")
        result = _record(LinkRecorder(StepConfig(step_name="")), workspace)
        assert result.document.signed.name == "step"
        assert result.local_path.name.startswith("step.")

    def test_perform_before_prebuild(self):
        with pytest.raises(RecorderStateError):
            LinkRecorder().perform()

    def test_command_and_byproducts_recorded(self, workspace: Path):
        recorder = LinkRecorder()
        recorder.prebuild(workspace, command=["make"], environment={"ci": True})
        result = recorder.perform(
            command=["make", "all"], byproducts={"return-value": 0}
        )
        link = result.document.signed
        assert link.command == ["make", "all"]
        assert link.byproducts == {"return-value": 0}
        assert link.environment == {"ci": True}

    def test_missing_workspace_is_fatal(self, tmp_path: Path):
        recorder = LinkRecorder()
        with pytest.raises(IOFailure):
            recorder.prebuild(tmp_path / "gone")
        assert recorder.link is None

    def test_workspace_removed_mid_step(self, workspace: Path):
        recorder = LinkRecorder(StepConfig(link_dir=workspace.parent / "links"))
        recorder.prebuild(workspace)
        workspace.rmdir()
        with pytest.raises(IOFailure):
            recorder.perform()
        assert not (workspace.parent / "links").exists()

    def test_previous_link_files_not_collected(self, workspace: Path):
        (workspace / "a.txt").write_text("hello")
        first = _record(LinkRecorder(StepConfig(step_name="one")), workspace)
        assert first.local_path.parent == workspace

        second = LinkRecorder(StepConfig(step_name="two")).prebuild(workspace)
        assert set(second.materials) == {"a.txt"}


class TestSigning:
    def test_unsigned_warns(self, workspace: Path, caplog: pytest.LogCaptureFixture):
        caplog.set_level(logging.WARNING)
        (workspace / "a.txt").write_text("hello")
        result = _record(LinkRecorder(), workspace)

        assert result.document.signatures == []
        assert "will not be signed" in caplog.text
        assert result.local_path.exists()

    def test_signed_with_key_file(self, workspace: Path, key: Ed25519Key, key_file: Path):
        (workspace / "a.txt").write_text("hello")
        recorder = LinkRecorder(StepConfig(key_path=key_file, step_name="build"))
        result = _record(recorder, workspace)

        [signature] = result.document.signatures
        assert signature.keyid == key.key_id()
        assert verify_signature(result.document.signed, signature, key.public_hex())
        assert result.local_path.name == f"build.{key.key_id()[:8]}.link"

    def test_unloadable_key_is_fatal_at_configuration(self, tmp_path: Path):
        with pytest.raises(SigningFailure):
            LinkRecorder(StepConfig(key_path=tmp_path / "missing.key"))

    def test_signing_failure_leaves_link_unsigned(
        self, workspace: Path, caplog: pytest.LogCaptureFixture
    ):
        class _BrokenKey:
            def key_id(self) -> str:
                return "broken"

            def sign(self, data: bytes):
                raise RuntimeError("token removed")

        caplog.set_level(logging.WARNING)
        result = _record(LinkRecorder(key=_BrokenKey()), workspace)
        assert result.document.is_signed is False
        assert "Signing failed" in caplog.text


class TestSubmission:
    def test_no_transport_writes_local_only(self, workspace: Path):
        result = _record(LinkRecorder(), workspace)
        assert [o.transport for o in result.outcomes] == ["local"]
        assert LinkDocument.from_json(result.local_path.read_text()) == result.document

    def test_link_dir_override(self, workspace: Path, tmp_path: Path):
        link_dir = tmp_path / "links"
        result = _record(LinkRecorder(StepConfig(link_dir=link_dir)), workspace)
        assert result.local_path.parent == link_dir

    def test_http_transport(self, workspace: Path, make_client):
        client, handler = make_client()
        config = StepConfig(transport="https://collector.example/links")
        result = _record(LinkRecorder(config, client=client), workspace)

        assert [o.transport for o in result.outcomes] == ["local", "http"]
        assert result.delivered is True
        assert LinkDocument.from_json(handler.requests[0].content) == result.document

    def test_grafeas_transport(self, workspace: Path, make_client):
        client, handler = make_client()
        result = _record(LinkRecorder(StepConfig(transport=GRAFEAS_URI), client=client), workspace)
        assert result.outcomes[-1].transport == "grafeas"
        assert str(handler.requests[0].url) == "https://store.example/api/occurrences"

    def test_missing_note_name_falls_back_to_local(
        self, workspace: Path, make_client, caplog: pytest.LogCaptureFixture
    ):
        caplog.set_level(logging.WARNING)
        client, handler = make_client()
        config = StepConfig(transport="grafeas+https://store.example/api?resourceUri=git://repo")
        result = _record(LinkRecorder(config, client=client), workspace)

        assert [o.transport for o in result.outcomes] == ["local"]
        assert result.local_path.exists()
        assert handler.requests == []
        assert "noteName" in caplog.text

    def test_unsupported_scheme_falls_back_to_local(
        self, workspace: Path, caplog: pytest.LogCaptureFixture
    ):
        caplog.set_level(logging.WARNING)
        result = _record(LinkRecorder(StepConfig(transport="ftp://files.example/")), workspace)
        assert [o.transport for o in result.outcomes] == ["local"]
        assert "Unsupported transport scheme" in caplog.text

    @pytest.mark.parametrize(
        "uri",
        [
            "http://host:abc/x",
            "https://bad\x00host/x",
            "grafeas+https://store.example:notaport/api?noteName=n&resourceUri=r",
        ],
    )
    def test_malformed_uri_falls_back_to_local(
        self, uri, workspace: Path, make_client, caplog: pytest.LogCaptureFixture
    ):
        caplog.set_level(logging.WARNING)
        client, handler = make_client()
        result = _record(LinkRecorder(StepConfig(transport=uri), client=client), workspace)

        assert [o.transport for o in result.outcomes] == ["local"]
        assert result.local_path.exists()
        assert handler.requests == []
        assert "Malformed" in caplog.text

    def test_transport_failure_reported_not_raised(
        self, workspace: Path, make_client, caplog: pytest.LogCaptureFixture
    ):
        caplog.set_level(logging.ERROR)
        client, _handler = make_client(status_code=500, text="boom")
        config = StepConfig(transport="https://collector.example/links")
        result = _record(LinkRecorder(config, client=client), workspace)

        failed = result.outcomes[-1]
        assert failed.delivered is False
        assert "500" in failed.detail
        assert result.delivered is False
        assert result.local_path.exists()
        assert "submission via http failed" in caplog.text

    def test_missing_hash_not_submitted(self, workspace: Path, make_client):
        client, handler = make_client()
        config = StepConfig(transport=GRAFEAS_URI)
        recorder = LinkRecorder(config, collector=ArtifactCollector(("sha512",)), client=client)
        (workspace / "a.txt").write_text("hello")
        result = _record(recorder, workspace)

        assert result.outcomes[-1].delivered is False
        assert handler.requests == []
        assert result.local_path.exists()


class TestRunCommand:
    def test_captures_output_and_return_value(self, tmp_path: Path):
        byproducts = run_command(
            [sys.executable, "-c", "import sys; print('hi'); sys.exit(3)"], cwd=tmp_path
        )
        assert byproducts["stdout"] == "hi\n"
        assert byproducts["return-value"] == 3

    def test_missing_executable(self):
        byproducts = run_command(["definitely-not-a-real-command-xyz"])
        assert byproducts["return-value"] == 127
        assert byproducts["stderr"]
