"""
Module which contains utils for producing and reading JSON payloads.

Database values are proxied as opaque JSON text. The helpers below build and
inspect small JSON documents for callers that do not want to deal with a full
serializer, they utilize orjson for parsing and encoding.
"""

import orjson


def dumps(obj, *, default=None, indent=None, sort_keys=False):
    option = 0

    if indent is not None:
        option |= orjson.OPT_INDENT_2

    if sort_keys:
        option |= orjson.OPT_SORT_KEYS

    return orjson.dumps(obj, default=default, option=option).decode('utf-8')

def loads(s):
    # Accept either str or bytes
    if isinstance(s, str):
        s = s.encode('utf-8')
    return orjson.loads(s)

def try_loads(s):
    """
    Parse a JSON document, returning None instead of raising when it is malformed.
    """
    if s is None:
        return None
    try:
        return loads(s)
    except orjson.JSONDecodeError:
        return None


def _quote(s):
    return orjson.dumps(str(s)).decode('utf-8')

def make_json_string(key, value):
    """Single field object with a string value, ex: {"name": "bob"}."""
    return '{%s: %s}' % (_quote(key), _quote(value))

def make_json_int(key, value):
    return '{%s: %d}' % (_quote(key), int(value))

def make_json_float(key, value):
    return '{%s: %.6f}' % (_quote(key), float(value))

def make_json_bool(key, value):
    return '{%s: %s}' % (_quote(key), 'true' if value else 'false')

def combine_json(fragments):
    """
    Combine single field JSON objects into one object.

    This is a textual splice: the outer braces of each fragment are removed and
    the remainders joined with commas. Every fragment must be a flat "{...}"
    object, a fragment that does not start and end with a brace is kept as-is
    and will produce invalid JSON. Use merge_json() for arbitrary objects.

    Parameters:
        fragments (list of str): JSON objects, ex: ['{"a": "1"}', '{"b": 2}'].

    Return:
        str: the combined object, "{}" for an empty list.
    """
    if not fragments:
        return '{}'

    parts = []
    for fragment in fragments:
        fragment = fragment.strip()
        if fragment.startswith('{'):
            fragment = fragment[1:]
        if fragment.endswith('}'):
            fragment = fragment[:-1]
        parts.append(fragment)
    return '{' + ', '.join(parts) + '}'

def merge_json(fragments):
    """
    Shallow-merge JSON objects by parsing them, later keys win.

    Raises:
        ValueError: if a fragment is not a JSON object.
    """
    merged = {}
    for fragment in fragments:
        obj = try_loads(fragment)
        if not isinstance(obj, dict):
            raise ValueError("not a JSON object: %r" % (fragment,))
        merged.update(obj)
    return dumps(merged)

def get_json_value(json_string, key):
    """
    Get the value of one top level field as a string.

    Strings are returned as-is, numbers and booleans in their JSON textual form
    and objects or arrays re-serialized.

    Return:
        str: the value, or None if the document can't be parsed or has no such key.
    """
    obj = try_loads(json_string)
    if not isinstance(obj, dict) or key not in obj:
        return None

    value = obj[key]
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return str(value)
    return dumps(value)


class JsonPayload(object):
    '''Structured builder for database payloads, serialized once.'''

    def __init__(self, initial=None):
        self._fields = dict(initial or {})

    def set(self, key, value):
        self._fields[key] = value
        return self

    def update(self, other):
        if isinstance(other, JsonPayload):
            other = other._fields
        self._fields.update(other)
        return self

    def remove(self, key):
        self._fields.pop(key, None)
        return self

    def toDict(self):
        return dict(self._fields)

    def __contains__(self, key):
        return key in self._fields

    def __len__(self):
        return len(self._fields)

    def __str__(self):
        return dumps(self._fields)
