"""High-level async client for the CarCard tag API.

:class:`CarCardClient` is the store facade consumed by the UI layer.  Its
methods never raise for server-side failures: they return a success value
and leave a user-facing message in :attr:`CarCardClient.error`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pycarcard._api import tags as _tags_api
from pycarcard._api._common import error_message
from pycarcard._transport import HttpTransport, Transport
from pycarcard.config import CarCardConfig
from pycarcard.exceptions import CarCardAuthenticationError, CarCardError, MalformedTagError
from pycarcard.ingestion.normalize import coerce_bool, extract_tag_payload, normalize_domain, normalize_tag, normalize_tags
from pycarcard.models.results import ActivationResult, UpdateResult
from pycarcard.models.tag import PrivacySetting, Tag, TagDomain
from pycarcard.state.capability import Capability, CapabilityGate, is_retirement_signal
from pycarcard.state.coalescer import RequestCoalescer
from pycarcard.state.freshness import FreshnessCache
from pycarcard.state.optimistic import OptimisticMutator
from pycarcard.state.store import EntityStore, Listener, StoreState

_logger = logging.getLogger(__name__)


class CarCardClient:
    """Async client and in-memory store for a user's tags.

    Usage::

        async with CarCardClient(CarCardConfig.from_env()) as client:
            await client.fetch_tags()
            for tag in client.tags:
                ...

    Every instance owns its own store, freshness timestamp, in-flight
    fetch and capability gate; nothing is shared between instances.
    """

    def __init__(
        self,
        config: CarCardConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config if config is not None else CarCardConfig()
        self._external_session = session is not None
        self._http_session = session
        self._external_transport = transport is not None
        self._transport = transport
        self._store = EntityStore()
        self._freshness = FreshnessCache(self._config.tag_cache_ttl, clock=clock)
        self._fetches: RequestCoalescer[None] = RequestCoalescer()
        self._gate = CapabilityGate()
        self._mutator = OptimisticMutator(self._store)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> CarCardClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._store.state

    @property
    def tags(self) -> tuple[Tag, ...]:
        return self._store.tags

    @property
    def is_loading(self) -> bool:
        return self._store.state.is_loading

    @property
    def error(self) -> str | None:
        return self._store.state.error

    @property
    def capabilities(self) -> CapabilityGate:
        return self._gate

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every new :class:`StoreState`."""
        return self._store.subscribe(listener)

    def find_tag(self, tag_id: str) -> Tag | None:
        return self._store.find(tag_id)

    def clear(self) -> None:
        """Forget all cached tags (e.g. on logout)."""
        self._freshness.invalidate()
        self._store.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise CarCardError("Client not initialized. Use 'async with CarCardClient(...) as client:'")
        return self._transport

    def _normalize(self, payload: Any) -> Tag:
        return normalize_tag(
            extract_tag_payload(payload),
            legacy_domain_fallback=self._config.legacy_domain_fallback,
        )

    def _wire_domain(self, domain: TagDomain | str) -> TagDomain | None:
        resolved = normalize_domain(domain)
        if resolved == TagDomain.UNKNOWN:
            self._store.set_state(is_loading=False, error=f"Unsupported tag domain: {domain}")
            return None
        return resolved

    def _failure_message(self, exc: CarCardError, fallback: str, capability: Capability | None = None) -> str:
        """Map a failure to its message, tripping *capability* on retirement."""
        if capability is not None and is_retirement_signal(exc):
            self._gate.trip(capability)
            return self._gate.tripped_message(capability)
        return error_message(exc, fallback)

    def _apply_reply(self, payload: Any, *, key: str | None = None) -> None:
        """Merge a write reply into the store and clear the loading flag.

        A reply without a usable tag still means the server accepted the
        write, so freshness is dropped and the next fetch reloads.
        """
        try:
            tag = self._normalize(payload)
        except MalformedTagError as exc:
            _logger.debug("Write reply carried no usable tag: %s", exc)
            self._freshness.invalidate()
            self._store.set_state(is_loading=False, error=None)
            return
        self._freshness.mark_fetched()
        if key is None:
            self._store.upsert(tag, is_loading=False, error=None)
        else:
            self._store.replace_matching(key, tag, is_loading=False, error=None)

    def _short_circuit(self, capability: Capability) -> bool:
        """Fail fast when *capability* has been retired."""
        if self._gate.is_supported(capability):
            return False
        _logger.debug("Skipping %s call: endpoint retired", capability.value)
        self._store.set_error(self._gate.unavailable_message(capability))
        return True

    # ------------------------------------------------------------------
    # Collection fetch
    # ------------------------------------------------------------------

    async def fetch_tags(self, *, force: bool = False) -> None:
        """Load the tag collection.

        Concurrent calls share one request.  Without *force*, a call inside
        the cache TTL with a non-empty store makes no request at all.
        """
        self._require_transport()
        await self._fetches.run(
            self._load_tags,
            force=force,
            is_fresh=lambda: self._freshness.is_fresh(bool(self._store.tags)),
        )

    async def _load_tags(self) -> None:
        transport = self._require_transport()
        self._store.set_state(is_loading=True, error=None)
        try:
            rows = await _tags_api.fetch_tags(transport)
        except CarCardAuthenticationError:
            # An expired session simply has no tags to show.
            _logger.debug("Tag fetch unauthenticated; showing empty collection")
            self._freshness.mark_fetched()
            self._store.replace_all((), is_loading=False, error=None)
            return
        except CarCardError as exc:
            _logger.debug("Tag fetch failed", exc_info=True)
            self._store.replace_all((), is_loading=False, error=error_message(exc, "Failed to load tags"))
            return

        tags = normalize_tags(rows, legacy_domain_fallback=self._config.legacy_domain_fallback)
        self._freshness.mark_fetched()
        self._store.replace_all(tags, is_loading=False, error=None)
        _logger.debug("Loaded %d tags", len(tags))

    # ------------------------------------------------------------------
    # Registration and activation
    # ------------------------------------------------------------------

    async def register_tag(self, code: str, nickname: str, domain: TagDomain | str, plate_number: str) -> bool:
        """Register a new tag; the store learns of it from the server reply."""
        transport = self._require_transport()
        wire_domain = self._wire_domain(domain)
        if wire_domain is None:
            return False

        self._store.set_state(is_loading=True, error=None)
        try:
            data = await _tags_api.create_tag(
                transport,
                code=code,
                nickname=nickname,
                domain=wire_domain,
                plate_number=plate_number,
            )
        except CarCardError as exc:
            self._store.set_state(is_loading=False, error=error_message(exc, "Failed to register tag"))
            return False

        self._apply_reply(data)
        return True

    async def activate_tag(self, code: str, nickname: str, domain: TagDomain | str, plate_number: str) -> bool:
        """Claim a pre-manufactured tag."""
        transport = self._require_transport()
        if self._short_circuit(Capability.ACTIVATE):
            return False
        wire_domain = self._wire_domain(domain)
        if wire_domain is None:
            return False

        self._store.set_state(is_loading=True, error=None)
        try:
            data = await _tags_api.activate_tag(
                transport,
                code=code,
                nickname=nickname,
                domain=wire_domain,
                plate_number=plate_number,
            )
        except CarCardError as exc:
            message = self._failure_message(exc, "Activation failed", Capability.ACTIVATE)
            self._store.set_state(is_loading=False, error=message)
            return False

        self._apply_reply(data)
        return True

    async def activate_tag_send_otp(self, code: str, phone_number: str) -> bool:
        """Send the activation OTP to *phone_number*."""
        transport = self._require_transport()
        self._store.set_state(is_loading=True, error=None)
        try:
            await _tags_api.send_activation_otp(transport, code=code, phone_number=phone_number)
        except CarCardError as exc:
            self._store.set_state(is_loading=False, error=error_message(exc, "Failed to send OTP"))
            return False
        self._store.set_loading(False)
        return True

    async def activate_tag_verify_otp(
        self,
        code: str,
        phone_number: str,
        otp: str,
        plate_number: str,
    ) -> ActivationResult:
        """Complete phone-verified activation.

        The server may also log the user in; the returned result carries
        its ``user`` and ``token`` when present.
        """
        transport = self._require_transport()
        self._store.set_state(is_loading=True, error=None)
        try:
            data = await _tags_api.verify_activation_otp(
                transport,
                code=code,
                phone_number=phone_number,
                otp=otp,
                plate_number=plate_number,
            )
        except CarCardError as exc:
            self._store.set_state(is_loading=False, error=error_message(exc, "Activation failed"))
            return ActivationResult(success=False)

        body: Mapping[str, Any] = data if isinstance(data, Mapping) else {}
        user = body.get("user") if isinstance(body.get("user"), Mapping) else None
        token = body.get("token") if isinstance(body.get("token"), str) else None

        self._apply_reply(body.get("tag"))
        return ActivationResult(success=True, user=dict(user) if user else None, token=token)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def toggle_privacy(self, tag_id: str, setting: PrivacySetting | str) -> bool:
        """Flip one privacy setting optimistically.

        The local flag changes before the request is sent; if the server
        rejects it the flag is flipped back silently.  Returns whether the
        server confirmed the change.
        """
        transport = self._require_transport()
        try:
            privacy_setting = PrivacySetting(setting)
        except ValueError:
            self._store.set_error(f"Unknown privacy setting: {setting}")
            return False

        def _flip(tag: Tag) -> Tag:
            return tag.with_privacy(tag.privacy.toggled(privacy_setting))

        return await self._mutator.run(
            tag_id,
            apply=_flip,
            revert=_flip,
            commit=lambda: _tags_api.set_privacy(transport, tag_id, privacy_setting),
        )

    async def get_public_tag(self, tag_id: str) -> dict[str, Any] | None:
        """Look up a scanned tag; locked tags return their locked payload."""
        transport = self._require_transport()
        try:
            data = await _tags_api.fetch_public_tag(transport, tag_id)
        except CarCardError as exc:
            _logger.debug("Public tag lookup failed for %s: %s", tag_id, exc)
            return None
        return dict(data) if isinstance(data, Mapping) else None

    async def update_tag(self, tag_id: str, data: Mapping[str, Any]) -> UpdateResult:
        """Submit changes to a tag.

        Identity-bearing changes may need phone confirmation: the result
        then has ``otp_required`` set and the store is left untouched
        until :meth:`verify_tag_otp_and_update` succeeds.
        """
        transport = self._require_transport()
        if self._short_circuit(Capability.UPDATE):
            return UpdateResult(success=False, unsupported=True)

        self._store.set_state(is_loading=True, error=None)
        try:
            response = await _tags_api.update_tag(transport, tag_id, data)
        except CarCardError as exc:
            message = self._failure_message(exc, "Failed to update tag", Capability.UPDATE)
            self._store.set_state(is_loading=False, error=message)
            return UpdateResult(success=False, unsupported=not self._gate.is_supported(Capability.UPDATE))

        if isinstance(response, Mapping) and coerce_bool(response.get("otpRequired")):
            self._store.set_loading(False)
            return UpdateResult(success=False, otp_required=True, pending=dict(data))

        self._apply_reply(response, key=tag_id)
        return UpdateResult(success=True)

    async def send_tag_otp(self, tag_id: str, phone_number: str, pending_data: Mapping[str, Any]) -> bool:
        """Request the OTP that confirms *pending_data* for *tag_id*."""
        transport = self._require_transport()
        if self._short_circuit(Capability.OTP_SEND):
            return False
        try:
            await _tags_api.send_tag_otp(transport, tag_id, phone_number=phone_number, pending_data=pending_data)
        except CarCardError as exc:
            self._store.set_error(self._failure_message(exc, "Failed to send OTP", Capability.OTP_SEND))
            return False
        return True

    async def verify_tag_otp_and_update(
        self,
        tag_id: str,
        phone_number: str,
        otp: str,
        pending_data: Mapping[str, Any],
    ) -> bool:
        """Confirm a pending update with its OTP and apply the server's result."""
        transport = self._require_transport()
        if self._short_circuit(Capability.OTP_VERIFY):
            return False

        self._store.set_state(is_loading=True, error=None)
        try:
            response = await _tags_api.verify_tag_otp(
                transport,
                tag_id,
                phone_number=phone_number,
                otp=otp,
                pending_data=pending_data,
            )
        except CarCardError as exc:
            message = self._failure_message(exc, "OTP verification failed", Capability.OTP_VERIFY)
            self._store.set_state(is_loading=False, error=message)
            return False

        self._apply_reply(response, key=tag_id)
        return True
