# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import pytest

from CloudServices.Management.core.config import ManagementConfig
from CloudServices.Management.core.telemetry import TelemetryConfig


class TestManagementConfig:
    def test_from_env_defaults(self):
        config = ManagementConfig.from_env()
        assert config.api_version is None
        assert config.polling_interval == 10.0
        assert config.http_retries is None
        assert config.telemetry is None

    def test_custom_values(self):
        telemetry = TelemetryConfig(enable_metrics=True)
        config = ManagementConfig(api_version="2024-05-01", polling_interval=2.5, telemetry=telemetry)
        assert config.api_version == "2024-05-01"
        assert config.polling_interval == 2.5
        assert config.telemetry is telemetry

    def test_negative_polling_interval_rejected(self):
        with pytest.raises(ValueError):
            ManagementConfig(polling_interval=-1)

    def test_frozen(self):
        config = ManagementConfig()
        with pytest.raises(AttributeError):
            config.api_version = "2020-01-01"
