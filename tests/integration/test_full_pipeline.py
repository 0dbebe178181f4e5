"""
Integration tests for the full relay pipeline
"""

import io
import json

import pytest
import yaml

from cdcrelay.cli import main
from cdcrelay.models.config import RelayConfig
from cdcrelay.relay_service import RelayService
from cdcrelay.services.log_source import MemoryLogManager
from cdcrelay.models.transaction import CreateRecord, Transaction


def log_entries():
    return [
        {"commit_id": 3, "creates": [{"table": "Orders", "columns": {"id": 1, "status": "paid"}}]},
        {"commit_id": 5, "updates": [{"table": "Orders", "key": 1, "columns": {"status": "shipped"}}],
         "creates": [{"table": "Customers", "columns": {"id": 7}}]},
        {"commit_id": 6, "creates": [{"table": "LogStreamer.State", "columns": {"x": 1}}]},
        {"commit_id": 8, "creates": [{"table": "Orders", "columns": {"id": 2, "status": "draft"}}]},
        {"commit_id": 9,
         "creates": [{"table": "Customers", "columns": {"id": 8}}],
         "updates": [{"table": "LogStreamer.LastPosition", "key": 1, "columns": {"TableId": "peer1/Orders"}}]},
        {"commit_id": 11, "creates": [{"table": "Customers", "columns": {"id": 9}}],
         "deletes": [{"table": "Orders", "key": 1}]},
        {"commit_id": 12, "creates": [{"table": "Items", "columns": {"id": 1}}]},
    ]


class TestFullPipeline:
    """Test full relay pipeline integration"""

    @pytest.fixture
    def sample_config(self, tmp_path):
        """Write a transaction log and a matching configuration"""
        with open(tmp_path / "orders.jsonl", "w", encoding="utf-8") as f:
            for entry in log_entries():
                f.write(json.dumps(entry) + "\n")

        config_data = {
            "peer": {"guid": "peer1"},
            "log": {"name": "orders", "directory": str(tmp_path)},
            "session": {
                "table_positions": {"": 2, "peer1/Orders": 4, "Customers": 5},
                "table_filter": ["peer1/Orders", "Customers"]
            },
            "operation_filters": {
                "Orders": {"where": {"status": {"ne": "draft"}}}
            }
        }
        config_path = tmp_path / "relay.yaml"
        config_path.write_text(yaml.dump(config_data), encoding="utf-8")
        return config_path

    @pytest.mark.asyncio
    async def test_relay_run(self, sample_config):
        """Test the relay writes only what the peer should receive"""
        service = RelayService.from_file(str(sample_config))
        output = io.StringIO()

        count = await service.run(output)
        lines = [json.loads(line) for line in output.getvalue().splitlines()]

        assert service.start_position.commit_id == 4
        assert count == 2
        assert [line["commit_id"] for line in lines] == [5, 11]
        assert lines[0]["updates"] == [{"table": "Orders", "key": 1, "columns": {"status": "shipped"}}]
        assert lines[0]["creates"] == []
        assert lines[1]["creates"] == [{"table": "Customers", "columns": {"id": 9}}]
        assert lines[1]["deletes"] == [{"table": "Orders", "key": 1}]
        assert service.reader.watermarks is None

    @pytest.mark.asyncio
    async def test_relay_shutdown_before_run(self, sample_config):
        """Test a shutdown request stops the relay without output"""
        service = RelayService.from_file(str(sample_config))
        service.request_shutdown()
        output = io.StringIO()

        assert await service.run(output) == 0
        assert output.getvalue() == ""

    @pytest.mark.asyncio
    async def test_relay_with_memory_log(self):
        """Test the relay accepts another log manager"""
        log_manager = MemoryLogManager()
        log_manager.append("orders", 1, Transaction(creates=[CreateRecord("Orders", {"id": 1})]))
        log_manager.append("orders", 2, Transaction(creates=[CreateRecord("Items", {"id": 1})]))
        config = RelayConfig.from_dict({
            "peer": {"guid": "peer1"},
            "log": {"name": "orders"},
            "session": {"table_filter": ["Orders"]}
        })
        output = io.StringIO()

        count = await RelayService(config, log_manager=log_manager).run(output)

        assert count == 1
        assert json.loads(output.getvalue())["commit_id"] == 1

    def test_cli_resolve(self, sample_config, capsys):
        """Test the resolve command prints the start commit id"""
        main(["resolve", str(sample_config)])

        assert capsys.readouterr().out.strip() == "4"

    def test_cli_run_to_file(self, sample_config, tmp_path):
        """Test the run command appends transactions to the output file"""
        output_path = tmp_path / "out.jsonl"

        main(["run", str(sample_config), "--output", str(output_path), "--log-level", "WARNING"])

        lines = output_path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["commit_id"] for line in lines] == [5, 11]

    def test_cli_bad_config(self, tmp_path, capsys):
        """Test configuration errors exit with status 1"""
        config_path = tmp_path / "relay.yaml"
        config_path.write_text("peer:\n  guid: peer1\n", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["run", str(config_path)])

        assert exc_info.value.code == 1
        assert "Missing required configuration key" in capsys.readouterr().err
