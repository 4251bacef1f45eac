from datetime import timedelta

from models.schema import Report, ReportEntry


def display_mins(duration: timedelta) -> str:
    minutes = int(duration.total_seconds() // 60)
    if minutes < 60:
        return f"{minutes} minutes"
    hours, remaining = divmod(minutes, 60)
    return f"{hours} hours {remaining} minutes"


def from_billed(flag: str) -> str:
    return "No" if flag == "n" else "Yes"


def format_entry(entry: ReportEntry) -> str:
    return (
        f"{entry.task}\n"
        f"  Date: {entry.in_date.strftime('%Y-%m-%d')}\n"
        f"  Duration: {display_mins(entry.duration)}\n"
        f"  Billed: {from_billed(entry.billed)}"
    )


def format_report(report: Report) -> str:
    lines = [format_entry(e) for e in report.entries]
    lines.append(f"Total: {display_mins(report.total)}")
    return "\n".join(lines)
