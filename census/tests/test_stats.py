from census.constants import BED_MODE_CRIB, HOSPITAL_CAPACITY
from census.services.records import empty_patient, empty_record
from census.services.stats import calculate_stats


def test_empty_day():
    stats = calculate_stats(empty_record('2024-03-10')['beds'])
    assert stats['occupiedBeds'] == 0
    assert stats['serviceCapacity'] == HOSPITAL_CAPACITY
    assert stats['availableCapacity'] == HOSPITAL_CAPACITY


def test_occupancy_cribs_and_blocks():
    beds = empty_record('2024-03-10')['beds']
    beds['R1']['patientName'] = 'A'
    beds['R1']['hasCompanionCrib'] = True
    beds['R2']['patientName'] = 'B'
    beds['R2']['clinicalCrib'] = dict(empty_patient('R2'), patientName='RN B')
    beds['NEO1']['patientName'] = 'C'
    beds['NEO1']['bedMode'] = BED_MODE_CRIB
    beds['R3']['isBlocked'] = True
    beds['E1']['patientName'] = 'D'  # inactive extra bed

    stats = calculate_stats(beds)
    assert stats['occupiedBeds'] == 2
    assert stats['occupiedCribs'] == 1
    assert stats['clinicalCribsCount'] == 1
    assert stats['companionCribs'] == 1
    assert stats['totalCribsUsed'] == 3
    assert stats['totalHospitalized'] == 4
    assert stats['blockedBeds'] == 1
    assert stats['serviceCapacity'] == HOSPITAL_CAPACITY - 1
    assert stats['availableCapacity'] == HOSPITAL_CAPACITY - 1 - 3

    assert calculate_stats(beds, ['E1'])['occupiedBeds'] == 3


def test_available_capacity_never_negative():
    beds = {f'E{i}': dict(empty_patient(f'E{i}'), patientName='X') for i in range(1, 6)}
    for bed_id, p in empty_record('2024-03-10')['beds'].items():
        if not bed_id.startswith('E'):
            beds[bed_id] = dict(p, patientName='X')
    stats = calculate_stats(beds, ['E1', 'E2', 'E3', 'E4', 'E5'])
    assert stats['availableCapacity'] == 0
