#  Copyright 2024 Cognite AS
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Union

import arrow
from arrow.parser import ParserError

from timerbuilder.exceptions import InvalidConfigError


def _to_snake_case(dictionary: Dict[str, Any], case_style: str) -> Dict[str, Any]:
    """
    Ensure that all keys in the dictionary follows the snake casing convention (recursively, so any sub-dictionaries are
    changed too).

    Args:
        dictionary: Dictionary to update.
        case_style: Existing casing convention. Either 'snake', 'hyphen' or 'camel'.

    Returns:
        An updated dictionary with keys in the given convention.
    """

    def fix_list(list_: List[Any], key_translator: Callable[[str], str]) -> List[Any]:
        if list_ is None:
            return []

        new_list: List[Any] = [None] * len(list_)
        for i, element in enumerate(list_):
            if isinstance(element, dict):
                new_list[i] = fix_dict(element, key_translator)
            elif isinstance(element, list):
                new_list[i] = fix_list(element, key_translator)
            else:
                new_list[i] = element
        return new_list

    def fix_dict(dict_: Dict[str, Any], key_translator: Callable[[str], str]) -> Dict[str, Any]:
        if dict_ is None:
            return {}

        new_dict: Dict[str, Any] = {}
        for key, value in dict_.items():
            if isinstance(value, dict):
                new_dict[key_translator(key)] = fix_dict(value, key_translator)
            elif isinstance(value, list):
                new_dict[key_translator(key)] = fix_list(value, key_translator)
            else:
                new_dict[key_translator(key)] = value
        return new_dict

    def translate_hyphen(key: str) -> str:
        return key.replace("-", "_")

    def translate_camel(key: str) -> str:
        return re.sub(r"([A-Z]+)", r"_\1", key).strip("_").lower()

    if case_style == "snake" or case_style == "underscore":
        return dictionary
    elif case_style == "hyphen" or case_style == "kebab":
        return fix_dict(dictionary, translate_hyphen)
    elif case_style == "camel" or case_style == "pascal":
        return fix_dict(dictionary, translate_camel)
    else:
        raise ValueError(f"Invalid case style: {case_style}")


def _parse_datetime(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse a datetime from a config file. Accepts ISO 8601 strings, datetimes already parsed by the YAML loader and
    epoch timestamps in seconds. Datetimes without a timezone are assumed to be UTC.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    try:
        return arrow.get(value).datetime
    except (ParserError, TypeError, ValueError) as e:
        raise InvalidConfigError(f"Invalid datetime: {value}") from e
