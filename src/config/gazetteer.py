"""Static Kentucky gazetteer: counties, city -> county mappings, other states.

This module provides:
1. The 120 Kentucky county names (the sub-region unit)
2. Known Kentucky city names mapped to their county
3. The other US state names, used to detect stories about another state
4. The tokens that count as an explicit Kentucky signal

Names are stored in display form; matching code normalizes them.
"""

REGION_CODE = "KY"

REGION_SIGNAL_TOKENS: tuple[str, ...] = ("kentucky", "ky")

KY_COUNTIES: tuple[str, ...] = (
    "Adair", "Allen", "Anderson",
    "Ballard", "Barren", "Bath", "Bell", "Boone", "Bourbon", "Boyd", "Boyle",
    "Bracken", "Breathitt", "Breckinridge", "Bullitt", "Butler",
    "Caldwell", "Calloway", "Campbell", "Carlisle", "Carroll", "Carter",
    "Casey", "Christian", "Clark", "Clay", "Clinton", "Crittenden",
    "Cumberland",
    "Daviess",
    "Edmonson", "Elliott", "Estill",
    "Fayette", "Fleming", "Floyd", "Franklin", "Fulton",
    "Gallatin", "Garrard", "Grant", "Graves", "Grayson", "Green", "Greenup",
    "Hancock", "Hardin", "Harlan", "Harrison", "Hart", "Henderson", "Henry",
    "Hickman", "Hopkins",
    "Jackson", "Jefferson", "Jessamine", "Johnson",
    "Kenton", "Knott", "Knox",
    "Larue", "Laurel", "Lawrence", "Lee", "Leslie", "Letcher", "Lewis",
    "Lincoln", "Livingston", "Logan", "Lyon",
    "McCracken", "McCreary", "McLean", "Madison", "Magoffin", "Marion",
    "Marshall", "Martin", "Mason", "Meade", "Menifee", "Mercer", "Metcalfe",
    "Monroe", "Montgomery", "Morgan", "Muhlenberg",
    "Nelson", "Nicholas",
    "Ohio", "Oldham", "Owen", "Owsley",
    "Pendleton", "Perry", "Pike", "Powell", "Pulaski",
    "Robertson", "Rockcastle", "Rowan", "Russell",
    "Scott", "Shelby", "Simpson", "Spencer",
    "Taylor", "Todd", "Trigg", "Trimble",
    "Union",
    "Warren", "Washington", "Wayne", "Webster", "Whitley", "Wolfe", "Woodford",
)

# City names are ambiguous across states; only trusted alongside a KY signal.
KY_CITY_COUNTY: dict[str, str] = {
    # Metro areas
    "Louisville": "Jefferson",
    "Jeffersontown": "Jefferson",
    "St. Matthews": "Jefferson",
    "Shively": "Jefferson",
    "Lexington": "Fayette",
    "Bowling Green": "Warren",
    "Owensboro": "Daviess",
    "Covington": "Kenton",
    "Independence": "Kenton",
    "Erlanger": "Kenton",
    "Florence": "Boone",
    "Burlington": "Boone",
    "Newport": "Campbell",
    "Fort Thomas": "Campbell",
    "Alexandria": "Campbell",

    # Regional hubs
    "Richmond": "Madison",
    "Berea": "Madison",
    "Georgetown": "Scott",
    "Hopkinsville": "Christian",
    "Nicholasville": "Jessamine",
    "Elizabethtown": "Hardin",
    "Radcliff": "Hardin",
    "Henderson": "Henderson",
    "Frankfort": "Franklin",
    "Paducah": "McCracken",
    "Ashland": "Boyd",
    "Madisonville": "Hopkins",
    "Murray": "Calloway",
    "Winchester": "Clark",
    "Danville": "Boyle",
    "Shelbyville": "Shelby",
    "Glasgow": "Barren",
    "Bardstown": "Nelson",
    "Shepherdsville": "Bullitt",
    "Mount Washington": "Bullitt",
    "Somerset": "Pulaski",
    "Lawrenceburg": "Anderson",
    "Campbellsville": "Taylor",
    "Mayfield": "Graves",
    "Paris": "Bourbon",
    "Versailles": "Woodford",
    "Harrodsburg": "Mercer",
    "London": "Laurel",
    "Corbin": "Whitley",
    "Williamsburg": "Whitley",
    "Middlesboro": "Bell",
    "Pineville": "Bell",
    "Pikeville": "Pike",
    "Hazard": "Perry",
    "Morehead": "Rowan",
    "Maysville": "Mason",
    "Franklin": "Simpson",
    "Russellville": "Logan",
    "Princeton": "Caldwell",
    "Benton": "Marshall",
    "Cynthiana": "Harrison",
    "Mount Sterling": "Montgomery",
    "Prestonsburg": "Floyd",
    "Paintsville": "Johnson",

    # County seats
    "Harlan": "Harlan",
    "Whitesburg": "Letcher",
    "Jackson": "Breathitt",
    "Manchester": "Clay",
    "Monticello": "Wayne",
    "Columbia": "Adair",
    "Leitchfield": "Grayson",
    "Greenville": "Muhlenberg",
    "Central City": "Muhlenberg",
    "Hartford": "Ohio",
    "Beaver Dam": "Ohio",
    "Morganfield": "Union",
    "Marion": "Crittenden",
    "Cadiz": "Trigg",
    "Elkton": "Todd",
    "Scottsville": "Allen",
    "Tompkinsville": "Monroe",
    "Burkesville": "Cumberland",
    "Albany": "Clinton",
    "Jamestown": "Russell",
    "Liberty": "Casey",
    "Stanford": "Lincoln",
    "Lancaster": "Garrard",
    "Mount Vernon": "Rockcastle",
    "Irvine": "Estill",
    "Stanton": "Powell",
    "Campton": "Wolfe",
    "Beattyville": "Lee",
    "Booneville": "Owsley",
    "Hyden": "Leslie",
    "Hindman": "Knott",
    "Salyersville": "Magoffin",
    "West Liberty": "Morgan",
    "Sandy Hook": "Elliott",
    "Grayson": "Carter",
    "Greenup": "Greenup",
    "Flemingsburg": "Fleming",
    "Owingsville": "Bath",
    "Carlisle": "Nicholas",
    "Falmouth": "Pendleton",
    "Williamstown": "Grant",
    "Warsaw": "Gallatin",
    "Carrollton": "Carroll",
    "La Grange": "Oldham",
    "Taylorsville": "Spencer",
    "Springfield": "Washington",
    "Lebanon": "Marion",
    "Hodgenville": "Larue",
    "Brandenburg": "Meade",
    "Hardinsburg": "Breckinridge",
    "Hawesville": "Hancock",
    "Calhoun": "McLean",
    "Dixon": "Webster",
    "Smithland": "Livingston",
    "Eddyville": "Lyon",
    "Wickliffe": "Ballard",
    "Bardwell": "Carlisle",
    "Clinton": "Hickman",
    "Hickman": "Fulton",
    "Fulton": "Fulton",
    "Brownsville": "Edmonson",
    "Munfordville": "Hart",
    "Edmonton": "Metcalfe",
    "Greensburg": "Green",
    "Morgantown": "Butler",
    "Inez": "Martin",
    "Louisa": "Lawrence",
    "Vanceburg": "Lewis",
    "Augusta": "Bracken",
    "Mount Olivet": "Robertson",
    "Owenton": "Owen",
    "New Castle": "Henry",
    "Bedford": "Trimble",
    "Barbourville": "Knox",
    "Whitley City": "McCreary",
    "Frenchburg": "Menifee",
}

OTHER_STATE_NAMES: tuple[str, ...] = (
    "Alabama", "Alaska", "Arizona", "Arkansas", "California", "Colorado",
    "Connecticut", "Delaware", "Florida", "Georgia", "Hawaii", "Idaho",
    "Illinois", "Indiana", "Iowa", "Kansas", "Louisiana", "Maine", "Maryland",
    "Massachusetts", "Michigan", "Minnesota", "Mississippi", "Missouri",
    "Montana", "Nebraska", "Nevada", "New Hampshire", "New Jersey",
    "New Mexico", "New York", "North Carolina", "North Dakota", "Ohio",
    "Oklahoma", "Oregon", "Pennsylvania", "Rhode Island", "South Carolina",
    "South Dakota", "Tennessee", "Texas", "Utah", "Vermont", "Virginia",
    "Washington", "West Virginia", "Wisconsin", "Wyoming",
    "District of Columbia",
)
