# qrgate/models/qr_records_table.py
# Table backing the sql record store

from sqlalchemy import Table, Column, Text, Integer, TIMESTAMP, Index

from qrgate.db.base import metadata


qr_records = Table(
    'qr_records',
    metadata,
    Column('id', Text, primary_key=True),
    Column('position', Integer, nullable=False),  # collection order, 0 = most recent
    Column('name', Text, nullable=False),
    Column('kind', Text, nullable=False),
    Column('content', Text, nullable=False),
    Column('expires_at', TIMESTAMP(timezone=True), nullable=True),
    Column('color_dark', Text, nullable=False),
    Column('color_light', Text, nullable=False),
    Column('size', Integer, nullable=False),
    Column('logo_data_url', Text, nullable=False, default=""),
    Column('logo_size_percent', Integer, nullable=False),
    Column('logo_radius', Integer, nullable=False),
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Column('updated_at', TIMESTAMP(timezone=True), nullable=False),
    Index('ix_qr_records_position', 'position'),
)
