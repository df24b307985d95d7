from .envelope import (
    RequestEnvelope,
    ResponseEnvelope,
    MonitorEvent,
    decode_request,
    encode_response,
    encode_event,
    )
from .errors import (
    SpanreedError,
    DecodeError,
    MethodNotFoundError,
    HandlerFault,
    CapabilityUnavailableError,
    TransportFault,
    ConfigurationFault,
    )
from .queues import task_queue, reply_queue, monitor_queue
