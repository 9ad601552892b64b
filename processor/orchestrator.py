"""Run orchestration across all destination calendars."""
import logging
from typing import Optional, Sequence

from processor.event_processor import EventProcessor
from processor.models import CreateOperation, Destination, RunResult, SyncResult
from processor.reconciler import reconcile
from processor.transforms import OverrideRegistry, apply_override

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Syncs each configured subscription into its destination calendar."""

    def __init__(
        self,
        fetcher,
        parser,
        client,
        registry: Optional[OverrideRegistry] = None,
        processor: Optional[EventProcessor] = None
    ):
        """
        Initialize the orchestrator with its collaborators.

        Args:
            fetcher: Object with fetch_text(uri)
            parser: Object with parse(text)
            client: Object with list, create and update
            registry: Per-destination overrides (default: none)
            processor: Event canonicalizer (default: EventProcessor())
        """
        self.fetcher = fetcher
        self.parser = parser
        self.client = client
        self.registry = registry or OverrideRegistry()
        self.processor = processor or EventProcessor()

    def run(self, destinations: Sequence[Destination]) -> RunResult:
        """
        Sync every destination in declaration order.

        A failure in one destination is logged and recorded in its
        SyncResult; the remaining destinations are still processed.

        Args:
            destinations: Configured destinations

        Returns:
            RunResult with one SyncResult per destination
        """
        run_result = RunResult()

        for destination in destinations:
            result = SyncResult()
            try:
                self.sync_destination(destination, result)
            except Exception as e:
                error_msg = f"Error syncing {destination.calendar_id}: {e}"
                logger.error(
                    error_msg,
                    extra={
                        'destination_id': destination.calendar_id,
                        'error_type': type(e).__name__
                    },
                    exc_info=True
                )
                result.errors.append(error_msg)
            run_result.results.append((destination.calendar_id, result))

        logger.info(
            f"Run complete: {len(run_result.succeeded)} destinations synced, "
            f"{len(run_result.failed)} failed"
        )
        return run_result

    def sync_destination(
        self,
        destination: Destination,
        result: Optional[SyncResult] = None
    ) -> SyncResult:
        """
        Reconcile one destination with its feed and apply the changes.

        Args:
            destination: Destination to sync
            result: SyncResult to fill in (default: a new one)

        Returns:
            SyncResult with the counts of this destination

        Raises:
            FetchError, ParseError, ApiError: If a collaborator fails
        """
        result = result if result is not None else SyncResult()
        calendar_id = destination.calendar_id
        logger.info(f"Syncing {destination.uri} into {calendar_id}")

        existing = self.client.list(calendar_id)
        text = self.fetcher.fetch_text(destination.uri)
        raw_events = self.parser.parse(text)

        canonical = self.processor.process_events(raw_events)
        result.skipped = self.processor.skipped

        outcome = apply_override(self.registry.resolve(calendar_id), canonical, calendar_id)
        result.transform_failed = outcome.failed

        operations = reconcile(calendar_id, existing, outcome.events)
        result.unchanged = len(outcome.events) - len(operations)

        for operation in operations:
            if isinstance(operation, CreateOperation):
                self.client.create(calendar_id, operation.event)
                result.created += 1
            else:
                self.client.update(calendar_id, operation.event_id, operation.resource)
                result.updated += 1

        logger.info(
            f"Synced {calendar_id}: {result.created} created, {result.updated} updated, "
            f"{result.unchanged} unchanged, {result.skipped} skipped"
        )
        return result
