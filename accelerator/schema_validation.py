from jsonschema import ValidationError, validate

BLOCKCHAIN_SCHEMA = {
    "type": "object",
    "required": ["result"],
    "properties": {
        "result": {
            "type": "object",
            "required": ["last_height"],
            "properties": {
                "last_height": {"type": "string", "pattern": "^[0-9]+$"},
            },
        }
    },
}

STATUS_SCHEMA = {
    "type": "object",
    "required": ["result"],
    "properties": {
        "result": {
            "type": "object",
            "required": ["sync_info"],
            "properties": {
                "sync_info": {
                    "type": "object",
                    "required": ["catching_up"],
                    "properties": {"catching_up": {"type": "boolean"}},
                }
            },
        }
    },
}

JSON_RPC_RESPONSE_SCHEMA = {
    "type": "object",
    "required": ["jsonrpc", "id", "result"],
    "properties": {
        "jsonrpc": {"type": "string"},
        "id": {"type": "number"},
    },
}


def validate_schema(schema: dict, data: dict) -> None:
    """
    Validate data against a JSON schema.
    Wrapper around jsonschema.validate
    """

    validate(instance=data, schema=schema)


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a validation error into ``path.to.field: message``."""
    path = ".".join(str(segment) for segment in error.absolute_path)
    return f"{path}: {error.message}" if path else error.message


def is_json_rpc_response(value) -> bool:
    try:
        validate_schema(JSON_RPC_RESPONSE_SCHEMA, value)
    except ValidationError:
        return False
    return True
