import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import qarm

logging.basicConfig(level=logging.INFO)

df = pd.DataFrame(np.random.rand(1000, 3), columns=["x1", "x2", "x3"])
df["y"] = df["x1"]*df["x2"] + 0.3*df["x3"]

search = qarm.TreeSearch(df, "y",
                         percentiles=(0.9, 1.0),
                         pop_size_attr_first=50,
                         max_gen_attr_first=50,
                         pop_size_range=100,
                         max_gen_range=100,
                         random_state=42)
root = search.find_tree()

for node in search.nodes():
    print(node)

print(search.stats)

if search.nodes():
    search.nodes()[0].show_front()
    plt.show()
