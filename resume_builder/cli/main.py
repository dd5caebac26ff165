"""resume-builder command line.

Every command works on a local JSON draft (``--draft``, default
``resume.json``): it loads the draft, applies one edit or boundary operation
through an ``EditorSession`` and writes the draft back.

Examples::

    resume-builder new --template two-side --name "Jane Doe"
    resume-builder skill add Python
    resume-builder custom add "Languages" --type tags
    resume-builder sections list
    resume-builder export --format pdf
"""
from __future__ import annotations

import asyncio
import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__, content, custom_sections, sections
from ..analysis import EXPERIENCE_LEVELS, summary_lines
from ..client import ResumeServiceClient
from ..config import Settings, load_settings
from ..errors import ValidationError
from ..export import ExportFormat
from ..model import CustomType, ResumeFormat, new_document
from ..persistence import PersistenceAdapter, load_draft, save_draft
from ..photo import PhotoUpload
from ..render_base import render
from ..render_nodes import RenderedDocument
from ..session import EditorSession
from .app import CLIApp, print_data

DEFAULT_DRAFT = "resume.json"
ENV_DRAFT = "RESUME_BUILDER_DRAFT"

app = CLIApp(
    "resume-builder",
    "Compose résumés from reorderable sections and export them as PDF or DOCX.",
    version=__version__,
)
app.common_argument("--draft", "-d", default=os.environ.get(ENV_DRAFT, DEFAULT_DRAFT),
                    help=f"Draft file (default: ${ENV_DRAFT} or {DEFAULT_DRAFT})")
app.common_argument("--config", "-c", default=None, help="Settings YAML (default: $RESUME_BUILDER_CONFIG)")


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------

def _settings(args) -> Settings:
    return load_settings(getattr(args, "config", None))


def _open_session(args, *, with_client: bool = False) -> EditorSession:
    settings = _settings(args)
    loaded = load_draft(args.draft)
    client = ResumeServiceClient.from_settings(settings.service) if with_client else None
    session = EditorSession(loaded.document, client=client, settings=settings)
    session.resume_name = loaded.resume_name
    session.editing_id = loaded.resume_id or None
    return session


def _store(args, session: EditorSession) -> None:
    save_draft(args.draft, session.document, session.resume_name, session.editing_id)


def _finish(args, session: EditorSession, *, store: bool = True) -> int:
    """Raise the session's error (for the exit code) or persist the draft."""
    if session.last_error is not None:
        raise session.last_error
    if store:
        _store(args, session)
    if session.notice is not None and getattr(args, "output", "text") == "text":
        print(session.notice.message)
    return 0


def _edit(args, transition, *a, **kw) -> Any:
    session = _open_session(args)
    extra = session.apply(transition, *a, **kw)
    _finish(args, session)
    return extra


def _outline(rendered: RenderedDocument) -> Dict[str, Any]:
    data = json.loads(json.dumps(asdict(rendered)))
    sidebar = data.get("sidebar")
    if sidebar and sidebar.get("photo"):
        sidebar["photo"] = f"<jpeg data url, {len(sidebar['photo']) * 3 // 4 // 1024} KB>"
    return data


def _outline_text(rendered: RenderedDocument) -> List[str]:
    lines = [f"[{rendered.template.value}] {rendered.person_name or '(no name)'}"]
    if rendered.header is not None and rendered.header.contact_line:
        lines.append(f"  {rendered.header.contact_line}")
    side = rendered.sidebar
    if side is not None:
        lines.append(f"  sidebar {side.accent_color} (text {side.text_color}){' with photo' if side.photo else ''}")
        for item in side.contact:
            lines.append(f"    {item.label}: {item.value}")
        if side.skills is not None:
            count = sum(len(getattr(b, "items", ())) for b in side.skills.blocks)
            lines.append(f"    {side.skills.title}: {count} item(s)")
    for node in rendered.body:
        lines.append(f"  # {node.title} ({node.kind.value}, {len(node.blocks)} block(s))")
    return lines


# -------------------------------------------------------------------------
# Document lifecycle
# -------------------------------------------------------------------------

@app.command("new", help="Start a new draft")
@app.argument("--template", "-t", choices=[f.value for f in ResumeFormat], default=ResumeFormat.CLASSIC.value)
@app.argument("--name", default="")
@app.argument("--email", default="")
@app.argument("--phone", default="")
@app.argument("--linkedin", default="")
@app.argument("--force", action="store_true", help="Overwrite an existing draft")
def cmd_new(args) -> int:
    if Path(args.draft).exists() and not args.force:
        raise ValidationError(f"Draft {args.draft} already exists", hint="Pass --force to overwrite it")
    doc = new_document(ResumeFormat(args.template))
    doc = content.set_personal_info(doc, name=args.name, email=args.email, phone=args.phone, linkedin=args.linkedin)
    save_draft(args.draft, doc)
    print(f"Created {args.draft} ({args.template})")
    return 0


@app.command("show", help="Print the rendered outline of the draft")
@app.argument("--template", "-t", choices=[f.value for f in ResumeFormat], default=None,
              help="Preview with another template without changing the draft")
def cmd_show(args) -> int:
    session = _open_session(args)
    doc = session.document
    if args.template:
        doc = content.set_template(doc, args.template)
    rendered = render(doc)
    if args.output == "text":
        print_data(_outline_text(rendered))
    else:
        print_data(_outline(rendered), args.output)
    return 0


@app.command("info", help="Set personal details and the profile summary")
@app.argument("--name")
@app.argument("--email")
@app.argument("--phone")
@app.argument("--linkedin")
@app.argument("--summary")
def cmd_info(args) -> int:
    values = {k: getattr(args, k) for k in ("name", "email", "phone", "linkedin") if getattr(args, k) is not None}
    session = _open_session(args)
    if values:
        session.apply(content.set_personal_info, **values)
    if args.summary is not None:
        session.apply(content.set_summary, args.summary)
    return _finish(args, session)


@app.command("style", help="Switch template or set the TwoSide accent colour")
@app.argument("--template", "-t", choices=[f.value for f in ResumeFormat])
@app.argument("--accent", help="Hex colour such as #2C5F7C")
def cmd_style(args) -> int:
    session = _open_session(args)
    if args.template:
        session.apply(content.set_template, args.template)
    if args.accent:
        session.apply(content.set_accent_color, args.accent)
    return _finish(args, session)


# -------------------------------------------------------------------------
# Section order
# -------------------------------------------------------------------------

sections_group = app.group("sections", help="Reorder and toggle sections")


@sections_group.command("list", help="List sections in document order")
def cmd_sections_list(args) -> int:
    session = _open_session(args)
    rows = [
        {"index": i, "id": s.id, "name": s.name, "type": s.type.value, "enabled": s.enabled}
        for i, s in enumerate(session.document.sections)
    ]
    if args.output == "text":
        print_data([f"{r['index']:>2}  [{'x' if r['enabled'] else ' '}] {r['name']}  ({r['type']}, id {r['id']})"
                    for r in rows])
    else:
        print_data(rows, args.output)
    return 0


@sections_group.command("up", help="Move the section at INDEX one place up")
@sections_group.argument("index", type=int)
def cmd_sections_up(args) -> int:
    _edit(args, sections.move_up, args.index)
    return 0


@sections_group.command("down", help="Move the section at INDEX one place down")
@sections_group.argument("index", type=int)
def cmd_sections_down(args) -> int:
    _edit(args, sections.move_down, args.index)
    return 0


@sections_group.command("toggle", help="Enable or disable a section by id")
@sections_group.argument("section_id")
def cmd_sections_toggle(args) -> int:
    _edit(args, sections.toggle, args.section_id)
    return 0


# -------------------------------------------------------------------------
# Custom sections
# -------------------------------------------------------------------------

custom_group = app.group("custom", help="Create and edit custom sections")


@custom_group.command("add", help="Create a custom section")
@custom_group.argument("heading")
@custom_group.argument("--type", dest="custom_type", choices=[t.value for t in CustomType],
                       default=CustomType.PARAGRAPH.value)
def cmd_custom_add(args) -> int:
    sid = _edit(args, custom_sections.create, args.heading, args.custom_type)
    print(sid)
    return 0


@custom_group.command("remove", help="Delete a custom section")
@custom_group.argument("section_id")
def cmd_custom_remove(args) -> int:
    _edit(args, custom_sections.remove, args.section_id)
    return 0


@custom_group.command("text", help="Replace a paragraph section's text")
@custom_group.argument("section_id")
@custom_group.argument("text")
def cmd_custom_text(args) -> int:
    _edit(args, custom_sections.set_text, args.section_id, args.text)
    return 0


@custom_group.command("tag", help="Append a tag to a tags section")
@custom_group.argument("section_id")
@custom_group.argument("tag")
def cmd_custom_tag(args) -> int:
    _edit(args, custom_sections.add_tag, args.section_id, args.tag)
    return 0


@custom_group.command("untag", help="Remove the tag at INDEX")
@custom_group.argument("section_id")
@custom_group.argument("index", type=int)
def cmd_custom_untag(args) -> int:
    _edit(args, custom_sections.remove_tag, args.section_id, args.index)
    return 0


@custom_group.command("item", help="Append an item to a list section")
@custom_group.argument("section_id")
@custom_group.argument("text", nargs="?", default="")
def cmd_custom_item(args) -> int:
    session = _open_session(args)
    item_id = session.apply(custom_sections.add_item, args.section_id)
    if item_id and args.text:
        session.apply(custom_sections.update_item, args.section_id, item_id, args.text)
    _finish(args, session)
    if item_id:
        print(item_id)
    return 0


@custom_group.command("item-set", help="Replace a list item's text")
@custom_group.argument("section_id")
@custom_group.argument("item_id")
@custom_group.argument("text")
def cmd_custom_item_set(args) -> int:
    _edit(args, custom_sections.update_item, args.section_id, args.item_id, args.text)
    return 0


@custom_group.command("item-rm", help="Remove a list item")
@custom_group.argument("section_id")
@custom_group.argument("item_id")
def cmd_custom_item_rm(args) -> int:
    _edit(args, custom_sections.remove_item, args.section_id, args.item_id)
    return 0


# -------------------------------------------------------------------------
# Built-in collections
# -------------------------------------------------------------------------

skill_group = app.group("skill", help="Edit the skills list")


@skill_group.command("add")
@skill_group.argument("skill")
def cmd_skill_add(args) -> int:
    _edit(args, content.add_skill, args.skill)
    return 0


@skill_group.command("rm", help="Remove the skill at INDEX")
@skill_group.argument("index", type=int)
def cmd_skill_rm(args) -> int:
    _edit(args, content.remove_skill, args.index)
    return 0


cert_group = app.group("cert", help="Edit the certifications list")


@cert_group.command("add")
@cert_group.argument("certification")
def cmd_cert_add(args) -> int:
    _edit(args, content.add_certification, args.certification)
    return 0


@cert_group.command("rm", help="Remove the certification at INDEX")
@cert_group.argument("index", type=int)
def cmd_cert_rm(args) -> int:
    _edit(args, content.remove_certification, args.index)
    return 0


ENTRY_OPS = {
    "education": (content.add_education, content.update_education, content.remove_education),
    "experience": (content.add_experience, content.update_experience, content.remove_experience),
    "projects": (content.add_project, content.update_project, content.remove_project),
}

entry_group = app.group("entry", help="Edit education, experience and project entries")


@entry_group.command("add", help="Add an entry; FIELD=VALUE pairs fill it in")
@entry_group.argument("kind", choices=list(ENTRY_OPS))
@entry_group.argument("fields", nargs="*", metavar="FIELD=VALUE")
def cmd_entry_add(args) -> int:
    add, update, _ = ENTRY_OPS[args.kind]
    pairs = _parse_pairs(args.fields)
    session = _open_session(args)
    entry_id = session.apply(add)
    for name, value in pairs:
        session.apply(update, entry_id, name, value)
    _finish(args, session)
    print(entry_id)
    return 0


@entry_group.command("set", help="Set FIELD=VALUE pairs on an entry")
@entry_group.argument("kind", choices=list(ENTRY_OPS))
@entry_group.argument("entry_id")
@entry_group.argument("fields", nargs="+", metavar="FIELD=VALUE")
def cmd_entry_set(args) -> int:
    _, update, _ = ENTRY_OPS[args.kind]
    pairs = _parse_pairs(args.fields)
    session = _open_session(args)
    for name, value in pairs:
        session.apply(update, args.entry_id, name, value)
    return _finish(args, session)


@entry_group.command("rm", help="Remove an entry")
@entry_group.argument("kind", choices=list(ENTRY_OPS))
@entry_group.argument("entry_id")
def cmd_entry_rm(args) -> int:
    _, _, remove = ENTRY_OPS[args.kind]
    _edit(args, remove, args.entry_id)
    return 0


def _parse_pairs(items: List[str]) -> List[tuple]:
    pairs = []
    for item in items:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise ValidationError(f"Expected FIELD=VALUE, got {item!r}")
        # Allow literal \n in descriptions typed on the command line.
        pairs.append((name.strip(), value.replace("\\n", "\n")))
    return pairs


# -------------------------------------------------------------------------
# Photo and export
# -------------------------------------------------------------------------

photo_group = app.group("photo", help="Set or remove the TwoSide profile photo")


@photo_group.command("set")
@photo_group.argument("path")
@photo_group.argument("--content-type", default="", help="Override the type guessed from the filename")
def cmd_photo_set(args) -> int:
    session = _open_session(args)
    upload = PhotoUpload.from_path(args.path, args.content_type)
    asyncio.run(session.upload_photo(upload))
    return _finish(args, session)


@photo_group.command("rm")
def cmd_photo_rm(args) -> int:
    session = _open_session(args)
    session.remove_photo()
    return _finish(args, session)


@app.command("export", help="Export the draft as PDF or DOCX")
@app.argument("--format", "-f", dest="fmt", choices=[f.value for f in ExportFormat], default="pdf")
@app.argument("--to", dest="out", default=None, help="Output file or directory (default: derived filename)")
def cmd_export(args) -> int:
    session = _open_session(args)
    asyncio.run(session.export(args.out, ExportFormat(args.fmt)))
    return _finish(args, session, store=False)


# -------------------------------------------------------------------------
# Resume service
# -------------------------------------------------------------------------

@app.command("pull", help="Load a saved resume from the service into the draft")
@app.argument("resume_id")
@app.argument("--force", action="store_true", help="Overwrite an existing draft")
def cmd_pull(args) -> int:
    if Path(args.draft).exists() and not args.force:
        raise ValidationError(f"Draft {args.draft} already exists", hint="Pass --force to overwrite it")
    settings = _settings(args)
    session = EditorSession(client=ResumeServiceClient.from_settings(settings.service), settings=settings)
    asyncio.run(session.load(args.resume_id))
    return _finish(args, session)


@app.command("push", help="Save the draft to the service")
@app.argument("--name", help="Resume name (default: the draft's name or a dated default)")
def cmd_push(args) -> int:
    session = _open_session(args, with_client=True)
    name = args.name if args.name is not None else (session.resume_name or session.prepare_save_name())
    resume_id = asyncio.run(session.save(name))
    code = _finish(args, session)
    if resume_id:
        print(resume_id)
    return code


@app.command("saved", help="List resumes saved on the service")
def cmd_saved(args) -> int:
    settings = _settings(args)
    rows = PersistenceAdapter(ResumeServiceClient.from_settings(settings.service)).list_saved()
    if args.output == "text":
        print_data([f"{r.get('_id') or r.get('resumeId') or r.get('id', '')}  {r.get('resumeName', '')}"
                    for r in rows])
    else:
        print_data(rows, args.output)
    return 0


@app.command("delete", help="Delete a resume saved on the service")
@app.argument("resume_id")
def cmd_delete(args) -> int:
    settings = _settings(args)
    client = ResumeServiceClient.from_settings(settings.service)
    client.delete_resume(args.resume_id)
    print(f"Deleted {args.resume_id}")
    return 0


@app.command("import-pdf", help="Fill the draft from an existing PDF resume")
@app.argument("path")
def cmd_import_pdf(args) -> int:
    session = _open_session(args, with_client=True)
    asyncio.run(session.import_pdf(args.path))
    return _finish(args, session)


@app.command("analyze", help="Score the draft against a job role")
@app.argument("job_role")
@app.argument("--level", "-l", choices=list(EXPERIENCE_LEVELS), required=True)
def cmd_analyze(args) -> int:
    session = _open_session(args, with_client=True)
    result = asyncio.run(session.analyze(args.job_role, args.level))
    if session.last_error is not None:
        raise session.last_error
    if args.output == "text":
        print_data(summary_lines(result))
    else:
        print_data(dict(result.raw), args.output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    return app.run(argv)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
