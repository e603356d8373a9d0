from dataclasses import dataclass

from src.member_bridge.core.services import OAuthBridgeService
from src.member_bridge.core.storage import MemberStore
from src.member_bridge.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    config: ConfigData
    member_store: MemberStore
    bridge_service: OAuthBridgeService
