"""
services/export.py

PPDB 접수 내역 내보내기 (CSV / XLSX).

- 열 순서와 표기는 학교 행정 양식(인도네시아어)을 따른다
- 성별은 Laki-laki / Perempuan, 날짜는 "d MMMM yyyy" (예: 5 Januari 2025)
- 비어 있는 선택 항목은 "-"
- 값 안의 줄바꿈(\r, \n)은 공백으로 바꿔 접수 1건이 항상 한 줄이 되도록 한다
- XLSX 에서는 "=" 로 시작하는 값도 수식이 아닌 문자열로 저장한다
- CSV 는 모든 필드를 큰따옴표로 감싸고(내부 따옴표는 두 번) 줄바꿈은 "\\n"

라우터(admin_ppdb)는 rows 를 받아 StreamingResponse / Response 로 감싸기만 한다.

"""

import csv
import io
from datetime import date, datetime
from typing import Iterable, Iterator

from openpyxl import Workbook
from sqlalchemy import desc, select
from sqlalchemy.orm import Session, selectinload

from school_cms.core.permissions import SessionUser, ensure_role
from school_cms.models.ppdb import Gender, PPDBRegistration
from school_cms.models.user import Role

EXPORT_HEADERS = [
    "No. Registrasi",
    "Nama Siswa",
    "NISN",
    "Jenis Kelamin",
    "Tempat Lahir",
    "Tanggal Lahir",
    "Agama",
    "Alamat",
    "Asal Sekolah",
    "Nama Ayah",
    "Pekerjaan Ayah",
    "No. HP Ayah",
    "Nama Ibu",
    "Pekerjaan Ibu",
    "No. HP Ibu",
    "Status",
    "Periode",
    "Tanggal Daftar",
]

INDONESIAN_MONTHS = [
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
]

GENDER_LABELS = {
    Gender.MALE: "Laki-laki",
    Gender.FEMALE: "Perempuan",
}

EMPTY = "-"


def format_date_id(value: date | datetime | None) -> str:
    if value is None:
        return EMPTY
    return f"{value.day} {INDONESIAN_MONTHS[value.month - 1]} {value.year}"


def _text(value) -> str:
    if value is None or value == "":
        return EMPTY
    return _single_line(str(value))


def _single_line(value: str) -> str:
    return " ".join(value.splitlines())


def registration_row(r: PPDBRegistration) -> list[str]:
    return [
        r.registration_no,
        _text(r.student_name),
        _text(r.nisn),
        GENDER_LABELS.get(r.gender, _text(r.gender)),
        _text(r.birth_place),
        format_date_id(r.birth_date),
        _text(r.religion),
        _text(r.address),
        _text(r.previous_school),
        _text(r.father_name),
        _text(r.father_job),
        _text(r.father_phone),
        _text(r.mother_name),
        _text(r.mother_job),
        _text(r.mother_phone),
        r.status.value,
        _text(r.period.name) if r.period else EMPTY,
        format_date_id(r.created_at),
    ]


def export_rows(db: Session, session: SessionUser | None, period_id=None) -> list[list[str]]:
    """내보낼 접수 내역 (최신순). period_id 가 없으면 전체."""
    ensure_role(session, Role.EDITOR)

    stmt = (
        select(PPDBRegistration)
        .options(selectinload(PPDBRegistration.period))
        .order_by(desc(PPDBRegistration.created_at))
    )
    if period_id is not None:
        stmt = stmt.where(PPDBRegistration.period_id == period_id)

    return [registration_row(r) for r in db.scalars(stmt).all()]


def iter_csv(rows: Iterable[list[str]]) -> Iterator[str]:
    """헤더 포함 CSV 를 한 행씩 생성 (BOM 은 라우터에서 붙인다)."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")

    writer.writerow(EXPORT_HEADERS)
    yield output.getvalue()
    output.seek(0)
    output.truncate(0)

    for row in rows:
        writer.writerow(row)
        yield output.getvalue()
        output.seek(0)
        output.truncate(0)


def build_xlsx(rows: Iterable[list[str]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "ppdb"

    ws.append(EXPORT_HEADERS)
    for row in rows:
        ws.append(row)
        # 지원자가 입력한 "=..." 값이 수식으로 실행되지 않도록 문자열로 고정
        for cell in ws[ws.max_row]:
            if cell.data_type == "f":
                cell.data_type = "s"

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(extension: str, today: date | None = None) -> str:
    today = today or date.today()
    return f"ppdb_export_{today.isoformat()}.{extension}"
