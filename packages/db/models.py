"""
SQLAlchemy ORM models for the clinical tables the ART start date lookups read.

Only the columns the calculation needs are mapped. Rows are never written by
the calculation itself; tests and fixtures seed them directly.
"""
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class Patient(Base):
    __tablename__ = "patient"

    patient_id = Column(Integer, primary_key=True)
    voided = Column(Boolean, nullable=False, default=False)

    programs = relationship("PatientProgram", back_populates="patient", cascade="all, delete-orphan")
    encounters = relationship("Encounter", back_populates="patient", cascade="all, delete-orphan")


class Program(Base):
    __tablename__ = "program"

    program_id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)


class PatientProgram(Base):
    __tablename__ = "patient_program"

    patient_program_id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patient.patient_id"), nullable=False, index=True)
    program_id = Column(Integer, ForeignKey("program.program_id"), nullable=False)
    date_enrolled = Column(DateTime, nullable=True)
    date_completed = Column(DateTime, nullable=True)
    voided = Column(Boolean, nullable=False, default=False)

    patient = relationship("Patient", back_populates="programs")
    program = relationship("Program")


class EncounterType(Base):
    __tablename__ = "encounter_type"

    encounter_type_id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)


class Encounter(Base):
    __tablename__ = "encounter"

    encounter_id = Column(Integer, primary_key=True)
    encounter_type = Column(Integer, ForeignKey("encounter_type.encounter_type_id"), nullable=True)
    patient_id = Column(Integer, ForeignKey("patient.patient_id"), nullable=False, index=True)
    encounter_datetime = Column(DateTime, nullable=False)
    voided = Column(Boolean, nullable=False, default=False)

    patient = relationship("Patient", back_populates="encounters")
    observations = relationship("Obs", back_populates="encounter")


class Concept(Base):
    __tablename__ = "concept"

    concept_id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=True)


class Obs(Base):
    __tablename__ = "obs"

    obs_id = Column(Integer, primary_key=True)
    person_id = Column(Integer, ForeignKey("patient.patient_id"), nullable=False, index=True)
    concept_id = Column(Integer, ForeignKey("concept.concept_id"), nullable=False, index=True)
    encounter_id = Column(Integer, ForeignKey("encounter.encounter_id"), nullable=True)
    obs_datetime = Column(DateTime, nullable=False)
    value_coded = Column(Integer, ForeignKey("concept.concept_id"), nullable=True)
    value_datetime = Column(DateTime, nullable=True)
    voided = Column(Boolean, nullable=False, default=False)

    encounter = relationship("Encounter", back_populates="observations")
