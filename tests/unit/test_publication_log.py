"""
Publication Log Tests

Test Coverage:
- Append on commit, replay rebuilds identical snapshot
- Corrupt lines / invalid records / epoch gaps
- Write failure leaves the graph unchanged, partial records truncated
"""

import errno
import json

import pytest

from contract_graph.application.coordinator import PublicationCoordinator
from contract_graph.domain.exceptions import PublicationLogError
from contract_graph.infrastructure.graph_store import GraphStore
from contract_graph.infrastructure.publication_log import PublicationLog


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "graph" / "publications.jsonl"


def _publish_chain(coordinator: PublicationCoordinator, make_interface) -> None:
    coordinator.publish("A", "1", make_interface("A", name="Alpha")).raise_for_error()
    coordinator.publish("B", "1", make_interface("B", clients=["A"], imports=["LATER"])).raise_for_error()
    coordinator.publish("C", "1", make_interface("C", clients=["B"])).raise_for_error()


class TestAppend:
    def test_one_line_per_accepted_publish(self, log_path, make_interface):
        log = PublicationLog(log_path)
        coordinator = PublicationCoordinator(GraphStore(), publication_log=log)
        _publish_chain(coordinator, make_interface)

        # rejected publishes are not logged
        coordinator.publish("A", "1", make_interface("A"))

        records = list(log.read())
        assert [r["epoch"] for r in records] == [1, 2, 3]
        assert records[0]["name"] == "Alpha"
        assert records[1]["edges"] == [
            {"to": "LATER", "kind": "import", "constraint": "*"},
            {"to": "A", "kind": "client", "constraint": "*"},
        ]

    def test_missing_file_reads_empty(self, log_path):
        assert list(PublicationLog(log_path).read()) == []

    def test_write_failure_leaves_graph_unchanged(self, tmp_path, make_interface):
        # parent path is a regular file -> mkdir fails
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        store = GraphStore()
        coordinator = PublicationCoordinator(store, publication_log=PublicationLog(blocker / "log.jsonl"))

        with pytest.raises(PublicationLogError):
            coordinator.publish("A", "1", make_interface("A"))

        assert store.epoch == 0
        assert not store.current().has_version("A", "1")

    def test_partial_write_is_truncated(self, log_path, make_interface, monkeypatch):
        log = PublicationLog(log_path)
        store = GraphStore()
        coordinator = PublicationCoordinator(store, publication_log=log)
        coordinator.publish("A", "1", make_interface("A")).raise_for_error()
        size_before = log_path.stat().st_size

        monkeypatch.setattr(log, "_open_for_append", lambda: _DiskFullFile(log_path.open("ab", buffering=0)))
        with pytest.raises(PublicationLogError):
            coordinator.publish("B", "1", make_interface("B", clients=["A"]))
        monkeypatch.undo()

        assert store.epoch == 1
        assert log_path.stat().st_size == size_before

        # next publish reuses epoch 2 and the log still replays
        coordinator.publish("B", "1", make_interface("B", clients=["A"])).raise_for_error()
        restored = GraphStore()
        assert PublicationLog(log_path).replay_into(restored) == 2
        assert list(restored.current().edges()) == list(store.current().edges())


class _DiskFullFile:
    """Writes half of the payload, then fails with ENOSPC"""

    def __init__(self, real):
        self._real = real

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self._real.close()
        return False

    def seek(self, *args):
        return self._real.seek(*args)

    def truncate(self, size):
        return self._real.truncate(size)

    def write(self, data):
        self._real.write(bytes(data[: len(data) // 2]))
        raise OSError(errno.ENOSPC, "No space left on device")


class TestReplay:
    def test_replay_rebuilds_same_graph(self, log_path, make_interface):
        original = GraphStore()
        _publish_chain(PublicationCoordinator(original, publication_log=PublicationLog(log_path)), make_interface)

        restored = GraphStore()
        count = PublicationLog(log_path).replay_into(restored)

        assert count == 3
        assert restored.epoch == original.epoch == 3
        assert list(restored.current().edges()) == list(original.current().edges())
        assert restored.current().display_name("A") == "Alpha"
        assert restored.current().get_version("B", "1") == original.current().get_version("B", "1")

    def test_corrupt_line(self, log_path, make_interface):
        _publish_chain(PublicationCoordinator(GraphStore(), publication_log=PublicationLog(log_path)), make_interface)
        with log_path.open("a", encoding="utf-8") as f:
            f.write("{not json\n")

        with pytest.raises(PublicationLogError) as exc_info:
            PublicationLog(log_path).replay_into(GraphStore())
        assert exc_info.value.line == 4

    def test_record_missing_fields(self, log_path):
        log_path.parent.mkdir(parents=True)
        log_path.write_text(json.dumps({"epoch": 1, "contract_id": "A"}) + "\n")

        with pytest.raises(PublicationLogError):
            PublicationLog(log_path).replay_into(GraphStore())

    def test_epoch_gap(self, log_path):
        log_path.parent.mkdir(parents=True)
        lines = [
            {"epoch": 1, "contract_id": "A", "version_label": "1", "edges": []},
            {"epoch": 3, "contract_id": "B", "version_label": "1", "edges": []},
        ]
        log_path.write_text("".join(json.dumps(line) + "\n" for line in lines))
        store = GraphStore()

        with pytest.raises(PublicationLogError) as exc_info:
            PublicationLog(log_path).replay_into(store)

        assert exc_info.value.line == 2
        assert store.epoch == 1

    def test_replayed_cycle_is_rejected(self, log_path):
        log_path.parent.mkdir(parents=True)
        lines = [
            {"epoch": 1, "contract_id": "A", "version_label": "1", "edges": [{"to": "B", "kind": "client"}]},
            {"epoch": 2, "contract_id": "B", "version_label": "1", "edges": [{"to": "A", "kind": "client"}]},
        ]
        log_path.write_text("".join(json.dumps(line) + "\n" for line in lines))

        with pytest.raises(PublicationLogError):
            PublicationLog(log_path).replay_into(GraphStore())

    def test_blank_lines_ignored(self, log_path):
        log_path.parent.mkdir(parents=True)
        log_path.write_text("\n" + json.dumps({"epoch": 1, "contract_id": "A", "version_label": "1"}) + "\n\n")

        store = GraphStore()
        assert PublicationLog(log_path).replay_into(store) == 1
        assert store.current().has_version("A", "1")

    def test_ambiguous_identifier_rejected(self, log_path):
        log_path.parent.mkdir(parents=True)
        log_path.write_text(json.dumps({"epoch": 1, "contract_id": "X", "version_label": "1@2"}) + "\n")

        with pytest.raises(PublicationLogError) as exc_info:
            PublicationLog(log_path).replay_into(GraphStore())
        assert exc_info.value.line == 1
