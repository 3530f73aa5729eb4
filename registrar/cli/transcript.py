"""CLI commands for calculating and inspecting final transcripts."""

from __future__ import annotations

from rich.console import Console
from rich.tree import Tree
from sqlalchemy.orm import Session

import registrar.lib.cli as click
import registrar.lib.json as json
from registrar.core import di, LoggingProvider
from registrar.model import FinalTranscriptResult, Outcome, StudentID, UserID
from registrar.storage import student as student_storage
from registrar.storage import transcript as transcript_storage
from registrar.storage import user as user_storage
from registrar.transcript import calculate_final_transcript, TranscriptError


@click.group("transcript")
def transcript():
    """Calculate and inspect final transcripts."""


console = Console()


def _outcome(o: Outcome) -> str:
    color = "green" if o is Outcome.Pass else "red"
    return f"[bold {color}]{o.value}[/bold {color}]"


def _echo_transcript(ft: FinalTranscriptResult) -> None:
    tree = Tree(
        f"[bold blue]Transcript {ft.transcript_id}[/bold blue] {ft.student_id}  {_outcome(ft.overall_result)}"
    )
    for b in ft.block_results:
        block = tree.add(f"[cyan]{b.block_id}[/cyan]  {b.block_total_mark:>8.2f}  {_outcome(b.block_result)}")
        for s in b.subject_results:
            subject = block.add(
                f"[cyan]{s.subject_id}[/cyan]  {s.subject_total_mark:>8.2f}  {_outcome(s.subject_result)}"
            )
            for t in s.test_results:
                subject.add(
                    f"[cyan]{t.test_id}[/cyan]  {t.test_total_mark:>8.2f}"
                    f" [dim]({t.test_weighted_mark:.2f} weighted)[/dim]  {_outcome(t.test_result)}"
                )
    console.print(tree)


@transcript.command("calculate")
@click.argument("student_id", type=click.KeyParamType(StudentID))
@click.option("--user", "-u", "user_id", type=click.KeyParamType(UserID), required=True, help="initiating user")
@di.inject
def transcript_calculate(
    student_id: StudentID,
    user_id: UserID,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> None:
    """Recalculate and store the final transcript of STUDENT_ID."""
    logger = logging.get_logger()

    with session.begin():
        if student_storage.get(student_id, session=session) is None:
            raise click.UsageError(f"no such student: {student_id}")
        if user_storage.get(user_id=user_id, session=session) is None:
            raise click.UsageError(f"no such user: {user_id}")

    try:
        ft = calculate_final_transcript(student_id, user_id, session=session)
    except TranscriptError:
        logger.exception("transcript calculation failed", extra={"student_id": student_id})
        raise

    _echo_transcript(ft)


@transcript.command("show")
@click.argument("student_id", type=click.KeyParamType(StudentID))
@click.option("--json", "as_json", is_flag=True, default=False, help="print the stored document as JSON")
@di.inject
def transcript_show(
    student_id: StudentID,
    as_json: bool,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Show the stored final transcript of STUDENT_ID."""
    with session.begin():
        ft = transcript_storage.get(student_id=student_id, session=session)

    if ft is None:
        click.echo(f"No transcript has been calculated for {student_id}.", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(ft, indent=2))
    else:
        _echo_transcript(ft)
