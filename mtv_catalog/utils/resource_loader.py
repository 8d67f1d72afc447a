"""리소스 파일(YAML/JSON) 로더 유틸리티"""
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

import yaml

from mtv_catalog.core.exceptions import ValidationException
from mtv_catalog.core.logging import logger


def get_resource_path(relative_path: str) -> str:
    """패키지 리소스 절대 경로 반환"""
    # mtv_catalog/utils/resource_loader.py -> mtv_catalog/utils -> mtv_catalog
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base_dir, "resources", relative_path)


@lru_cache(maxsize=32)
def load_yaml_resource(relative_path: str) -> Dict[str, Any]:
    """YAML 리소스 로드 및 캐싱"""
    path = get_resource_path(relative_path)
    if not os.path.exists(path):
        logger.warning(f"Resource not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load YAML resource {path}: {e}")
        return {}


def load_seed_names(relative_path: str = "seeds.yaml") -> List[str]:
    """카테고리별 시드 목록을 순서대로 펼쳐서 반환"""
    data = load_yaml_resource(relative_path)
    names: List[str] = []
    for category in data.get("categories", []):
        for name in category.get("seeds", []) or []:
            if isinstance(name, str):
                names.append(name)
    return names


def load_seeds_by_category(relative_path: str = "seeds.yaml") -> Dict[str, List[str]]:
    data = load_yaml_resource(relative_path)
    return {
        category.get("name", "uncategorized"): list(category.get("seeds", []) or [])
        for category in data.get("categories", [])
    }


def load_override_file(path: str) -> Dict[str, Dict[str, Optional[str]]]:
    """수동 채널 매핑 파일 로드 (YAML 또는 JSON)

    지원 형식:
        "Seed Name": "UCxxxx"
        "Seed Name": {channel_id: "UCxxxx", notes: "..."}
    최상위에 overrides: 키가 있으면 그 아래를 사용합니다.

    Returns:
        dict: seed_name → {"channel_id", "notes"}. 파일이 없으면 빈 dict

    Raises:
        ValidationException: 형식이 잘못된 경우
    """
    if not os.path.exists(path):
        logger.info(f"Override file not found, skipping: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValidationException("overrides", f"cannot parse {path}: {e}")

    if isinstance(data, dict) and isinstance(data.get("overrides"), dict):
        data = data["overrides"]
    if not isinstance(data, dict):
        raise ValidationException("overrides", f"expected a mapping in {path}")

    overrides: Dict[str, Dict[str, Optional[str]]] = {}
    for seed_name, value in data.items():
        if isinstance(value, str):
            channel_id, notes = value, None
        elif isinstance(value, dict) and isinstance(value.get("channel_id"), str):
            channel_id, notes = value["channel_id"], value.get("notes")
        else:
            raise ValidationException("overrides", f"invalid entry for '{seed_name}'")
        if not channel_id.strip():
            raise ValidationException("overrides", f"empty channel_id for '{seed_name}'")
        overrides[str(seed_name)] = {"channel_id": channel_id.strip(), "notes": notes}
    return overrides
