from scimkit.messages.error import ErrorMessage
from scimkit.messages.list_response import ListResponse
from scimkit.messages.patch_op import PatchOp

__all__ = [
    "ErrorMessage",
    "ListResponse",
    "PatchOp",
]
