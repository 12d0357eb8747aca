import pandas as pd
from time import perf_counter
from c45forest import ID3Classifier
from c45forest.datasets import load_play_tennis

data = load_play_tennis()
df = pd.DataFrame(data.X.astype(int), columns=data.feature_names)
df["PlayTennis"] = [data.class_names[c] for c in data.y]
print(df)

clf = ID3Classifier(height=4, cutoff=0.01,
                    feature_names=data.feature_names, class_names=data.class_names)

t0 = perf_counter(); clf.fit(data.X, data.y); print(f"fit: {perf_counter()-t0:.3f} s")
clf.print_tree()
print("entropy of the leaves:", round(clf.calc_entropy(), 4))
print("training accuracy:", clf.score(data.X, data.y))

z = [2, 2, 1, 1]  # Sunny, Hot, High, Strong
print("classify", z, "->", clf.classify(z))
for rule in clf.export_rules():
    print(rule)

print("pruned nodes:", clf.prune(n_prune=1, threshold=0.98))
clf.print_tree()
print("entropy of the leaves after pruning:", round(clf.calc_entropy(), 4))

try:
    clf.export_graphviz("play_tennis_tree", format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
