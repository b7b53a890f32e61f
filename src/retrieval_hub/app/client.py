"""retrieval_hub.app.client

HTTP client for a running retrieval hub service.

Classes
-------
RetrievalHubClient
    Thin ``requests`` wrapper over the service endpoints.
RetrievalHubClientError
    Raised when the service reports a failed operation.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

import requests

DEFAULT_TIMEOUT_S = 30.0


class RetrievalHubClientError(RuntimeError):
    """Error reported by the service in a response envelope.

    Attributes
    ----------
    code : str
        Machine-readable error code (e.g., ``"INTERNAL_ERROR"``).
    retryable : bool
        Whether the service considers the operation safe to retry.
    status_code : int or None
        HTTP status of the failed response.
    trace_id : str or None
        Trace identifier echoed by the service.
    """

    def __init__(
            self,
            message: str,
            *,
            code: str = "UNKNOWN",
            retryable: bool = False,
            status_code: Optional[int] = None,
            trace_id: Optional[str] = None,
        ):
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.status_code = status_code
        self.trace_id = trace_id


class RetrievalHubClient:
    """Client for the retrieval hub HTTP API.

    Parameters
    ----------
    base_url : str
        Service root, e.g. ``"http://localhost:8000"``.
    timeout : float, optional
        Per-request timeout in seconds.
    session : requests.Session or None, optional
        Session to send requests with. A new session is created when omitted.
    trace_id : str or None, optional
        Value sent as ``X-Trace-Id`` on envelope endpoints.
    """

    def __init__(
            self,
            base_url: str,
            timeout: float = DEFAULT_TIMEOUT_S,
            session: Optional[requests.Session] = None,
            trace_id: Optional[str] = None,
        ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.session = session or requests.Session()
        self.trace_id = trace_id

    def _url(self, path: str) -> str:
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.trace_id:
            headers["X-Trace-Id"] = self.trace_id
        return headers

    def _request(self, method: str, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        resp = self.session.request(
            method,
            self._url(path),
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )

        try:
            body = resp.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("success") is False:
            error = body.get("error")
            if isinstance(error, dict):
                raise RetrievalHubClientError(
                    str(error.get("message", "Request failed")),
                    code=str(error.get("code", "UNKNOWN")),
                    retryable=bool(error.get("retryable", False)),
                    status_code=resp.status_code,
                    trace_id=body.get("trace_id"),
                )
            raise RetrievalHubClientError(str(error or "Request failed"), status_code=resp.status_code)

        resp.raise_for_status()
        return body

    def _data(self, method: str, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        body = self._request(method, path, payload)
        return body.get("data") if isinstance(body, dict) else body

    def index_documents(
            self,
            documents: Iterable[Mapping[str, Any]],
            options: Optional[Mapping[str, Any]] = None,
        ) -> Dict[str, int]:
        """Index raw documents; returns ``{"indexed", "chunks"}``."""
        payload: Dict[str, Any] = {"documents": [dict(doc) for doc in documents]}
        if options:
            payload["options"] = dict(options)
        return self._data("POST", "/index", payload)

    def search(
            self,
            query: str,
            *,
            top_k: Optional[int] = None,
            filters: Optional[Mapping[str, Any]] = None,
            include_metadata: bool = False,
        ) -> Dict[str, Any]:
        """Run a search; returns the serialised retrieval result."""
        payload: Dict[str, Any] = {"query": query, "include_metadata": include_metadata}
        if top_k is not None:
            payload["top_k"] = top_k
        if filters:
            payload["filters"] = dict(filters)
        return self._data("POST", "/search", payload)

    def retrieve_for_ircot(self, query: str, context: Optional[str] = None) -> str:
        payload: Dict[str, Any] = {"query": query}
        if context:
            payload["context"] = context
        return self._data("POST", "/ircot", payload)

    def delete_document(self, doc_id: str) -> int:
        """Delete a source document's chunks; returns the number removed."""
        body = self._request("DELETE", f"/document/{requests.utils.quote(doc_id, safe='')}")
        return int(body.get("deleted", 0))

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/stats")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")


__all__ = ["RetrievalHubClient", "RetrievalHubClientError"]
