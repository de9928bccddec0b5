"""
Client for the remote stopping-power prediction service.

One POST per launch with a JSON body {start_pos, vdir, vmag}. The service
answers {"stopping_power": float} or {"error": str}. There are no retries,
and no timeout unless one is configured.

Results are tagged with a launch sequence number. A front end checks
is_current(seq) before showing a result, so an answer that arrives after a
newer launch or a reset is dropped.
"""
import http.client
import json
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib import error as url_error
from urllib import request as url_request

import numpy as np

from spviz.constants import PREDICT_URL, PREDICTION_DISCLAIMER, STOPPING_POWER_UNIT
from spviz.integrator import parse_vector, unit_vector

logger = logging.getLogger(__name__)

UNEXPECTED_RESPONSE = "unexpected response from prediction service"


@dataclass(frozen=True)
class PredictionRequest:
    start_pos: Tuple[float, float, float]
    vdir: Tuple[float, float, float]
    vmag: float

    def to_payload(self):
        return {
            "start_pos": list(self.start_pos),
            "vdir": list(self.vdir),
            "vmag": self.vmag,
        }


@dataclass(frozen=True)
class PredictionResult:
    stopping_power: Optional[float] = None
    error: Optional[str] = None
    transport_error: Optional[str] = None

    @property
    def ok(self):
        return self.stopping_power is not None


def build_request(position, direction, speed, normalize=True):
    """
    Package a launch for the prediction service.

    position is sent for traceability only; the service ignores it.
    direction is normalized when normalize is set and sent raw otherwise.
    """
    pos = parse_vector(position)
    if pos is None:
        raise ValueError(f"Start position is not a finite number: {position!r}")
    vdir = parse_vector(direction)
    if vdir is None:
        raise ValueError(f"Direction is not a finite number: {direction!r}")
    if normalize:
        vdir = unit_vector(vdir)
    return PredictionRequest(
        start_pos=tuple(float(x) for x in pos),
        vdir=tuple(float(x) for x in vdir),
        vmag=float(speed),
    )


def parse_response(data):
    """Turn a decoded JSON response body into a PredictionResult."""
    if not isinstance(data, dict):
        return PredictionResult(error=UNEXPECTED_RESPONSE)

    sp = data.get("stopping_power")
    if sp is not None:
        if isinstance(sp, bool) or not isinstance(sp, (int, float)) or not np.isfinite(sp):
            return PredictionResult(error=f"non-numeric stopping_power: {sp!r}")
        return PredictionResult(stopping_power=float(sp))

    if "error" in data:
        return PredictionResult(error=str(data["error"]))
    return PredictionResult(error=UNEXPECTED_RESPONSE)


def format_result(result):
    """Text for the result display region."""
    if result.ok:
        return (
            f"Estimated Stopping Power: {result.stopping_power:.4f} {STOPPING_POWER_UNIT}\n"
            f"{PREDICTION_DISCLAIMER}"
        )
    if result.transport_error is not None:
        return f"Request failed: {result.transport_error}"
    return f"Error: {result.error}"


def _decode_body(raw):
    return json.loads(raw.decode("utf-8"))


class PredictionClient:
    """
    Issues prediction requests.

    opener defaults to urllib.request.urlopen; tests pass a fake with the
    same call signature.
    """

    def __init__(self, url=PREDICT_URL, timeout=None, opener=None):
        self.url = url
        self.timeout = timeout
        self._opener = opener or url_request.urlopen
        self._seq = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------
    # Synchronous request
    # ------------------------------------------------------------
    def predict(self, request):
        payload = request.to_payload()
        req = url_request.Request(
            self.url,
            method="POST",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        kwargs = {} if self.timeout is None else {"timeout": self.timeout}
        logger.debug(f"POST {self.url} {payload}")

        try:
            with self._opener(req, **kwargs) as resp:
                raw = resp.read()
        except url_error.HTTPError as exc:
            # Error statuses may still carry an {"error": ...} body
            try:
                data = _decode_body(exc.read())
            except (OSError, http.client.HTTPException, UnicodeDecodeError, ValueError):
                logger.warning(f"Prediction request failed: HTTP {exc.code} {exc.reason}")
                return PredictionResult(transport_error=f"HTTP Error {exc.code}: {exc.reason}")
            return parse_response(data)
        except url_error.URLError as exc:
            logger.warning(f"Prediction request failed: {exc.reason}")
            return PredictionResult(transport_error=str(exc.reason))
        except (OSError, http.client.HTTPException) as exc:
            # Socket errors, timeouts and connections dropped mid-response
            logger.warning(f"Prediction request failed: {exc}")
            return PredictionResult(transport_error=str(exc) or type(exc).__name__)

        try:
            data = _decode_body(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning(f"Prediction response is not JSON: {exc}")
            return PredictionResult(transport_error=f"invalid JSON in response: {exc}")

        result = parse_response(data)
        if result.ok:
            logger.info(f"Predicted stopping power: {result.stopping_power:.4f}")
        else:
            logger.warning(f"Prediction service returned an error: {result.error}")
        return result

    # ------------------------------------------------------------
    # Background requests tagged with a launch sequence number
    # ------------------------------------------------------------
    def submit(self, request, on_done):
        """
        Run predict() on a daemon thread and call on_done(seq, result).

        on_done runs on the worker thread; GUI code should hand the result
        to its own thread before touching widgets.
        """
        with self._lock:
            self._seq += 1
            seq = self._seq

        def worker():
            on_done(seq, self.predict(request))

        thread = threading.Thread(target=worker, name=f"prediction-{seq}", daemon=True)
        thread.start()
        return seq

    def invalidate(self):
        """Mark every in-flight request as stale."""
        with self._lock:
            self._seq += 1

    def is_current(self, seq):
        with self._lock:
            return seq == self._seq


def drain_results(client, result_queue):
    """
    Empty a queue of (seq, result) pairs filled by submit() callbacks.

    Returns the newest result that is still current, or None. Results from
    launches that were superseded or reset are logged and dropped.
    """
    latest = None
    while True:
        try:
            seq, result = result_queue.get_nowait()
        except queue.Empty:
            return latest
        if client.is_current(seq):
            latest = result
        else:
            logger.debug(f"Discarding stale prediction #{seq}")
