"""Provider 端点配置。

百炼应用的 completion 端点由 base_url 与应用 ID 拼接而成：
    {base_url}/apps/{app_id}/completion

这里集中维护默认值，settings 中的 qianwen_base_url / qianwen_endpoint 可覆盖。"""

from dataclasses import dataclass
from typing import Dict, Mapping


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    completion_path: str
    headers: Dict[str, str]

    def completion_url(self, app_id: str, base_url: str = "") -> str:
        base = (base_url or self.base_url).rstrip("/")
        return f"{base}/{self.completion_path.format(app_id=app_id)}"


# DashScope / 通义千问应用配置
QIANWEN_CONFIG = ProviderConfig(
    name="qianwen",
    base_url="https://dashscope.aliyuncs.com/api/v1",
    completion_path="apps/{app_id}/completion",
    headers={"X-DashScope-SSE": "enable"},
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "qianwen": QIANWEN_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
