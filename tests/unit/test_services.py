"""
Unit tests for services
"""

import pytest
import json
import tempfile
import os

import yaml
from prometheus_client import CollectorRegistry

from cdcrelay.services.config_service import ConfigService
from cdcrelay.services.metrics_service import MetricsService
from cdcrelay.models.config import RelayConfig
from cdcrelay.exceptions import ConfigurationError


CONFIG_DATA = {
    "peer": {"guid": "peer1"},
    "log": {"name": "orders", "directory": "/var/lib/relay", "follow": True, "poll_interval": 0.2},
    "session": {
        "table_positions": {"": 10, "peer1/Orders": 12},
        "table_filter": ["peer1/Orders", "Customers"]
    },
    "operation_filters": {
        "Orders": {"operations": ["create", "update"], "where": {"status": {"ne": "draft"}}}
    },
    "logging": {"level": "DEBUG", "format": "console"}
}


def write_config(suffix, content):
    with tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False) as f:
        f.write(content)
        return f.name


class TestConfigService:
    """Test ConfigService"""

    def test_load_json_config(self):
        """Test loading JSON configuration"""
        config_path = write_config('.json', json.dumps(CONFIG_DATA))

        try:
            service = ConfigService()
            config = service.load_config(config_path)

            assert isinstance(config, RelayConfig)
            assert config.peer.guid == "peer1"
            assert config.log.name == "orders"
            assert config.log.follow is True
            assert config.session.table_positions == {"": 10, "peer1/Orders": 12}
            assert config.operation_filters["Orders"].operations == ["create", "update"]
            assert config.logging.format == "console"
            assert service.get_config() is config
        finally:
            os.unlink(config_path)

    def test_load_yaml_config(self):
        """Test loading YAML configuration"""
        config_path = write_config('.yaml', yaml.dump(CONFIG_DATA))

        try:
            config = ConfigService().load_config(config_path)

            assert config.session.table_filter == ["peer1/Orders", "Customers"]
            assert config.log.poll_interval == 0.2
        finally:
            os.unlink(config_path)

    def test_minimal_config_defaults(self):
        """Test only peer and log are required"""
        config_path = write_config('.yml', "peer:\n  guid: peer1\nlog:\n  name: orders\n")

        try:
            config = ConfigService().load_config(config_path)

            assert config.log.directory == "."
            assert config.log.follow is False
            assert config.session.table_positions is None
            assert config.session.table_filter is None
            assert config.operation_filters == {}
            assert config.logging.level == "INFO"
        finally:
            os.unlink(config_path)

    def test_config_file_not_found(self):
        """Test configuration file not found"""
        service = ConfigService()

        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            service.load_config("nonexistent.json")

    def test_invalid_json_config(self):
        """Test invalid JSON configuration"""
        config_path = write_config('.json', "invalid json content")

        try:
            with pytest.raises(ConfigurationError, match="Invalid JSON configuration"):
                ConfigService().load_config(config_path)
        finally:
            os.unlink(config_path)

    def test_invalid_yaml_config(self):
        """Test invalid YAML configuration"""
        config_path = write_config('.yaml', "peer: [unclosed")

        try:
            with pytest.raises(ConfigurationError, match="Invalid YAML configuration"):
                ConfigService().load_config(config_path)
        finally:
            os.unlink(config_path)

    def test_unsupported_format(self):
        """Test unsupported configuration format"""
        config_path = write_config('.txt', "some content")

        try:
            with pytest.raises(ConfigurationError, match="Unsupported configuration format"):
                ConfigService().load_config(config_path)
        finally:
            os.unlink(config_path)

    def test_missing_required_section(self):
        """Test a configuration without log section"""
        config_path = write_config('.json', json.dumps({"peer": {"guid": "peer1"}}))

        try:
            with pytest.raises(ConfigurationError, match="Missing required configuration key"):
                ConfigService().load_config(config_path)
        finally:
            os.unlink(config_path)

    def test_get_config_before_load(self):
        """Test getting configuration before loading"""
        with pytest.raises(ConfigurationError, match="Configuration not loaded"):
            ConfigService().get_config()


class TestMetricsService:
    """Test MetricsService"""

    def setup_method(self):
        """Set up test fixtures"""
        self.metrics_service = MetricsService()

    def test_separate_registries(self):
        """Test two services do not share collectors"""
        other = MetricsService()
        self.metrics_service.record_forwarded()

        assert "cdcrelay_transactions_forwarded_total 1.0" in self.metrics_service.get_metrics()
        assert "cdcrelay_transactions_forwarded_total 0.0" in other.get_metrics()

    def test_custom_registry(self):
        """Test metrics are registered with a given registry"""
        registry = CollectorRegistry()
        service = MetricsService(registry=registry)
        service.record_start_position(17)

        assert registry.get_sample_value('cdcrelay_start_commit_id') == 17

    def test_record_read(self):
        """Test reads count and move the last commit id"""
        self.metrics_service.record_read(3)
        self.metrics_service.record_read(9)
        registry = self.metrics_service.registry

        assert registry.get_sample_value('cdcrelay_transactions_read_total') == 2
        assert registry.get_sample_value('cdcrelay_last_commit_id') == 9

    def test_record_suppressed_and_dropped(self):
        """Test labelled counters"""
        self.metrics_service.record_suppressed("loop")
        self.metrics_service.record_dropped("update", "already_seen", count=3)
        registry = self.metrics_service.registry

        assert registry.get_sample_value(
            'cdcrelay_transactions_suppressed_total', {'reason': 'loop'}) == 1
        assert registry.get_sample_value(
            'cdcrelay_records_dropped_total', {'operation': 'update', 'reason': 'already_seen'}) == 3
