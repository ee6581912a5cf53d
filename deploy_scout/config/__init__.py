"""Configuration module for Deploy Scout.

Provides focused classes for different configuration concerns:
- Config: Main configuration class (aggregates all components)
- SSHConfigParser: Parses ~/.ssh/config files
- HostKeyVerifier: Resolves the known_hosts file
- Settings: Environment variable configuration
"""

from deploy_scout.config.host_keys import HostKeyVerifier
from deploy_scout.config.main import Config
from deploy_scout.config.parser import SSHConfigParser
from deploy_scout.config.settings import Settings

__all__ = ["Config", "SSHConfigParser", "HostKeyVerifier", "Settings"]
