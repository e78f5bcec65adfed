"""
配置加载器

负责加载构建配置（JSON 或 YAML）与包清单（JSON），并使用 Pydantic 验证。
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .schema import BuildConfig, PackageConfig

# 包清单文件名（位于 <src>/<source_name>/ 下）
MANIFEST_FILE_NAME = "config.json"


class ConfigurationError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigurationError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
            else:
                formatted.append(f"根级别: {msg}")
        return "\n".join(formatted)

    def __str__(self) -> str:
        base = super().__str__()
        details = self.format_errors()
        return f"{base}\n{details}" if details else base


@dataclass
class ValidationResult:
    """配置验证结果"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    config: Optional[BuildConfig] = None


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML(typ='safe')

    def load_from_file(self, config_path: Union[str, Path]) -> BuildConfig:
        """从文件加载构建配置

        Args:
            config_path: 配置文件路径（.json / .yaml / .yml）

        Returns:
            BuildConfig: 验证后的配置实例

        Raises:
            ConfigurationError: 配置加载或验证错误
        """
        config_path = Path(config_path)
        raw_data = self._read_document(config_path)

        try:
            return BuildConfig.from_dict(raw_data)
        except ValidationError as e:
            raise ConfigValidationError(f"构建配置验证失败: {config_path}", e.errors(include_url=False, include_context=False))

    def load_package_config(self, manifest_path: Union[str, Path], source_name: str = "") -> PackageConfig:
        """加载包清单

        Args:
            manifest_path: 清单路径（<src>/<source_name>/config.json）
            source_name: 包源名称，仅用于错误信息

        Returns:
            PackageConfig: 验证后的包清单

        Raises:
            ConfigurationError: 清单不存在或无效
        """
        manifest_path = Path(manifest_path)
        label = f"'{source_name}' " if source_name else ""

        if not manifest_path.is_file():
            raise ConfigurationError(f"找不到包 {label}的清单文件: {manifest_path}")

        raw_data = self._read_document(manifest_path)

        try:
            return PackageConfig.model_validate(raw_data)
        except ValidationError as e:
            raise ConfigValidationError(f"包 {label}的清单验证失败: {manifest_path}", e.errors(include_url=False, include_context=False))

    def save_to_file(self, config: BuildConfig, output_path: Union[str, Path]) -> None:
        """保存构建配置（按扩展名选择 JSON 或 YAML）"""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = config.to_dict()
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                if output_path.suffix.lower() in ('.yaml', '.yml'):
                    yaml = YAML()
                    yaml.default_flow_style = False
                    yaml.dump(data, f)
                else:
                    json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise ConfigurationError(f"保存配置文件失败: {e}")

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """验证配置文件并返回错误列表（空列表表示通过）"""
        try:
            self.load_from_file(config_path)
            return []
        except ConfigValidationError as e:
            return e.errors
        except ConfigurationError as e:
            return [{
                'loc': [],
                'msg': str(e),
                'type': 'config_error'
            }]

    def _read_document(self, path: Path) -> Dict[str, Any]:
        """读取并解析 JSON/YAML 文档，根级别必须是对象"""
        if not path.exists():
            raise ConfigurationError(f"配置文件不存在: {path}")

        if not path.is_file():
            raise ConfigurationError(f"配置路径不是文件: {path}")

        suffix = path.suffix.lower()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if suffix in ('.yaml', '.yml'):
                    raw_data = self.yaml.load(f)
                elif suffix == '.json':
                    raw_data = json.load(f)
                else:
                    raise ConfigurationError(f"配置文件必须是 .json、.yaml 或 .yml 格式: {path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"JSON 解析错误 {path}: {e}")
        except YAMLError as e:
            raise ConfigurationError(f"YAML 解析错误 {path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"文件读取错误 {path}: {e}")

        if raw_data is None:
            raise ConfigurationError(f"配置文件为空: {path}")

        if not isinstance(raw_data, dict):
            raise ConfigurationError(f"配置文件根级别必须是对象/字典格式: {path}")

        return raw_data


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> BuildConfig:
    """便捷函数：加载构建配置"""
    return config_loader.load_from_file(config_path)


def load_package_config(manifest_path: Union[str, Path], source_name: str = "") -> PackageConfig:
    """便捷函数：加载包清单"""
    return config_loader.load_package_config(manifest_path, source_name)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """便捷函数：验证构建配置"""
    return config_loader.validate_file(config_path)


def validate_config_with_result(config_or_path: Union[BuildConfig, str, Path]) -> ValidationResult:
    """验证配置并返回详细结果"""
    try:
        if isinstance(config_or_path, (str, Path)):
            config = load_config(config_or_path)
        else:
            config = config_or_path
        return ValidationResult(is_valid=True, config=config)

    except ConfigValidationError as e:
        return ValidationResult(is_valid=False, errors=e.format_errors().splitlines())

    except ConfigurationError as e:
        return ValidationResult(is_valid=False, errors=[f"配置加载失败: {e}"])


def save_config(config: BuildConfig, output_path: Union[str, Path]) -> None:
    """便捷函数：保存构建配置"""
    config_loader.save_to_file(config, output_path)
