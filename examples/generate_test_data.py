import csv
import os
import random

if not os.path.exists("data"):
  os.mkdir("data")

if not os.path.exists("data/surveys.csv"):
  # Animals caught in each plot, some without a recorded weight.
  genera = ["Dipodomys", "Onychomys", "Perognathus", "Chaetodipus", "Neotoma"]
  surveys = []
  for record_id in range(1, 1001):
    plot_id = random.randint(1, 24)
    year = random.randint(1977, 2002)
    genus = random.choice(genera)
    weight = random.randint(5, 280) if random.random() > 0.1 else "NA"
    surveys.append([record_id, year, plot_id, genus, weight])

  with open("data/surveys.csv", "w", newline="") as f:
    writer = csv.writer(f)
    writer.writerow(["record_id", "year", "plot_id", "genus", "weight"])
    writer.writerows(surveys)
