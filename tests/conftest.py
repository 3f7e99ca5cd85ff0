
import pytest

from geotour.records import Record


CSV_ROWS = """X,Y,Time,Street,Offense,Date,Tract,Lat,Long
1380507.0,411943.0,2,5300 BLOCK PENN AV,ROBBERY,01/01/90,1113,40.4618,-79.9296
1345553.0,404142.0,5,1800 BLOCK CENTRE AV,BURGLARY,01/01/90,509,40.4404,-80.0031
1359412.0,403219.0,7,300 BLOCK N NEGLEY AV,AGGRAVATED ASSAULT,01/02/90,1104,40.4574,-79.9289
1347002.0,412231.0,9,100 BLOCK FEDERAL ST,ROBBERY,01/03/90,2204,40.4520,-80.0050
1352109.0,395870.0,11,2200 BLOCK E CARSON ST,BURGLARY,01/04/90,1702,40.4283,-79.9752
1362210.0,408880.0,14,5600 BLOCK BAUM BLVD,ROBBERY,01/05/90,1017,40.4606,-79.9325
1341900.0,398500.0,16,700 BLOCK W CARSON ST,AGGRAVATED ASSAULT,01/06/90,1921,40.4380,-80.0178
"""


@pytest.fixture
def records_csv(tmp_path):
    p = tmp_path / "records.csv"
    p.write_text(CSV_ROWS, encoding="utf-8")
    return p


@pytest.fixture
def unit_square():
    return [Record(0.0, 0.0), Record(1.0, 0.0), Record(1.0, 1.0), Record(0.0, 1.0)]
